"""
Study content generation service.

Builds prompts from a document's text, calls the LLM via llm_service and
turns the reply into records the rest of the app can store:
  - flashcards: {"flashcards": [{"question", "answer"}]}
  - quiz:       {"questions": [{"question", "options", "correct_answer",
                                "explanation", "difficulty"}]}
  - summary, chat answers, concept explanations: plain text

Malformed entries are logged and dropped. A reply that cannot be parsed at
all, or that yields nothing usable, raises ContentGenerationError.
"""
from __future__ import annotations

import json
import logging

from studydeck.config import settings
from studydeck.models.chat import ChatMessage
from studydeck.models.common import Difficulty
from studydeck.models.document import Document
from studydeck.models.flashcard import FlashcardDraft
from studydeck.models.quiz import Question
from studydeck.services.llm_service import LLMResponseError, chat_json, chat_text

logger = logging.getLogger(__name__)

OPTIONS_PER_QUESTION = 4
CHAT_HISTORY_MESSAGES = 10


class ContentGenerationError(Exception):
    """Raised when the LLM reply cannot be turned into study content."""


def _excerpt(document: Document, limit: int | None = None) -> str:
    limit = limit or settings.content_char_limit
    return f"Title: {document.title}\n\nContent:\n{document.content[:limit]}"


def _flashcard_system_prompt(count: int, difficulty: Difficulty) -> str:
    return (
        "You are an AI that creates educational flashcards. "
        f"Generate {count} flashcards with questions and answers based on the document content. "
        "Respond ONLY with valid JSON in exactly this structure:\n"
        '{"flashcards": [{"question": "string", "answer": "string"}]}\n'
        "Make questions clear and answers concise but complete. "
        f"Difficulty level: {difficulty.value}."
    )


def _quiz_system_prompt(question_count: int, difficulty: Difficulty) -> str:
    return (
        "You are an AI that creates educational multiple-choice quizzes. "
        f"Generate {question_count} questions with {OPTIONS_PER_QUESTION} options each, "
        "where only one option is correct. Include explanations for correct answers. "
        "Respond ONLY with valid JSON in exactly this structure:\n"
        '{"questions": [{"question": "string", "options": ["a", "b", "c", "d"], '
        '"correct_answer": 0, "explanation": "string", "difficulty": "medium"}]}\n'
        f"correct_answer is the 0-{OPTIONS_PER_QUESTION - 1} index of the correct option. "
        f"Difficulty: {difficulty.value}."
    )


SUMMARY_SYSTEM_PROMPT = (
    "You are an AI learning assistant. Summarize the document for a student "
    "in a few short paragraphs, covering the key concepts and definitions. "
    "Be concise, accurate, and base the summary only on the provided content."
)

CHAT_SYSTEM_PROMPT = (
    "You are an AI learning assistant. Help the user understand and learn from "
    "their document. Be concise, accurate, and educational. Always base your "
    "responses on the provided document content."
)

EXPLAIN_SYSTEM_PROMPT = (
    "You are an AI tutor that explains concepts clearly and thoroughly. Use the "
    "provided document as your primary source and explain in a way that is easy "
    "to understand."
)


async def _request_json(system_prompt: str, user_prompt: str, max_tokens: int) -> dict:
    try:
        result = await chat_json(system_prompt, user_prompt, max_tokens=max_tokens)
    except (json.JSONDecodeError, LLMResponseError) as e:
        logger.warning("LLM returned an unusable JSON reply: %s", e)
        raise ContentGenerationError("Error parsing AI response") from e
    if not isinstance(result, dict):
        raise ContentGenerationError("Error parsing AI response")
    return result


async def _request_text(
    system_prompt: str,
    user_prompt: str,
    max_tokens: int = 1000,
    history: list[dict[str, str]] | None = None,
) -> str:
    try:
        text = await chat_text(system_prompt, user_prompt, max_tokens=max_tokens, history=history)
    except LLMResponseError as e:
        logger.warning("LLM returned an unusable reply: %s", e)
        raise ContentGenerationError("Error parsing AI response") from e
    if not text:
        raise ContentGenerationError("AI response was empty")
    return text


def _entries(result: dict, key: str) -> list:
    entries = result.get(key)
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ContentGenerationError(f"AI response field '{key}' is not a list")
    return entries


def _parse_question(raw: dict, default_difficulty: Difficulty) -> Question | None:
    text = str(raw.get("question") or "").strip()
    options = raw.get("options")
    if not text or not isinstance(options, list) or len(options) != OPTIONS_PER_QUESTION:
        return None

    # tolerate camelCase from models that ignore the requested keys
    correct = raw.get("correct_answer", raw.get("correctAnswer"))
    if isinstance(correct, bool) or not isinstance(correct, int):
        return None
    if not 0 <= correct < OPTIONS_PER_QUESTION:
        return None

    try:
        difficulty = Difficulty(raw.get("difficulty") or default_difficulty)
    except ValueError:
        difficulty = default_difficulty

    return Question(
        question=text,
        options=[str(o) for o in options],
        correct_answer=correct,
        explanation=str(raw.get("explanation") or ""),
        difficulty=difficulty,
    )


async def generate_flashcards(
    document: Document,
    count: int = 10,
    difficulty: Difficulty = Difficulty.MEDIUM,
) -> list[FlashcardDraft]:
    user_prompt = (
        f"Create {count} flashcards from this document:\n\n{_excerpt(document)}\n\n"
        "Return ONLY the JSON object."
    )
    result = await _request_json(_flashcard_system_prompt(count, difficulty), user_prompt, 2000)

    drafts: list[FlashcardDraft] = []
    for card in _entries(result, "flashcards"):
        if not isinstance(card, dict):
            continue
        question = str(card.get("question") or "").strip()
        answer = str(card.get("answer") or "").strip()
        if not question or not answer:
            continue
        drafts.append(FlashcardDraft(question=question, answer=answer))

    if not drafts:
        raise ContentGenerationError("AI response contained no usable flashcards")
    logger.info("Generated %d flashcards for document %s", len(drafts), document.id)
    return drafts[:count]


async def generate_quiz_questions(
    document: Document,
    question_count: int = 5,
    difficulty: Difficulty = Difficulty.MEDIUM,
) -> list[Question]:
    user_prompt = (
        f"Create a {question_count}-question multiple choice quiz from this document:\n\n"
        f"{_excerpt(document)}\n\nReturn ONLY the JSON object."
    )
    result = await _request_json(
        _quiz_system_prompt(question_count, difficulty), user_prompt, 3000
    )

    questions: list[Question] = []
    for raw in _entries(result, "questions"):
        parsed = _parse_question(raw, difficulty) if isinstance(raw, dict) else None
        if parsed is None:
            logger.warning("Dropping malformed quiz question for document %s", document.id)
            continue
        questions.append(parsed)

    if not questions:
        raise ContentGenerationError("AI response contained no usable questions")
    logger.info("Generated %d quiz questions for document %s", len(questions), document.id)
    return questions[:question_count]


async def summarize(document: Document) -> str:
    return await _request_text(SUMMARY_SYSTEM_PROMPT, _excerpt(document))


async def answer_question(
    document: Document, message: str, history: list[ChatMessage] | None = None
) -> str:
    """Answer a question about the document, continuing an earlier conversation."""
    system_prompt = f"{CHAT_SYSTEM_PROMPT}\n\n{_excerpt(document, settings.chat_char_limit)}"
    recent = [
        {"role": m.role.value, "content": m.content}
        for m in (history or [])[-CHAT_HISTORY_MESSAGES:]
    ]
    answer = await _request_text(system_prompt, message, history=recent)
    logger.info(
        "Answered chat message for document %s (%d prior messages)", document.id, len(recent)
    )
    return answer


async def explain_concept(document: Document, concept: str) -> str:
    user_prompt = (
        f"Please explain the concept of \"{concept}\" based on the information in this "
        "document. Provide a clear, detailed explanation with examples if available.\n\n"
        f"{_excerpt(document)}"
    )
    return await _request_text(EXPLAIN_SYSTEM_PROMPT, user_prompt, max_tokens=1500)
