from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from studydeck.config import settings
from studydeck.models.flashcard import Flashcard
from studydeck.models.quiz import Question, Quiz

CREATED = "2026-01-01T00:00:00+00:00"
QUIZ_KEY = (0, 1, 2, 3, 0)


@pytest.fixture
def make_card():
    def _make(**overrides) -> Flashcard:
        fields = {
            "id": "card-1",
            "user_id": "local",
            "document_id": "doc-1",
            "question": "What does a mitochondrion produce?",
            "answer": "ATP",
            "next_review": datetime(2026, 1, 1, tzinfo=timezone.utc),
            "created_at": CREATED,
            "updated_at": CREATED,
        }
        fields.update(overrides)
        return Flashcard(**fields)

    return _make


@pytest.fixture
def make_quiz():
    def _make(correct_answers=QUIZ_KEY) -> Quiz:
        questions = [
            Question(
                question=f"Question {i + 1}?",
                options=["A", "B", "C", "D"],
                correct_answer=correct,
                explanation=f"Option {correct} is right",
            )
            for i, correct in enumerate(correct_answers)
        ]
        return Quiz(
            id="quiz-1",
            user_id="local",
            document_id="doc-1",
            title="Cells - Quiz",
            questions=questions,
            created_at=CREATED,
        )

    return _make


@pytest.fixture
def flashcard_reply():
    return {
        "flashcards": [
            {"question": "What is the powerhouse of the cell?", "answer": "The mitochondrion"},
            {"question": "What molecule stores genetic information?", "answer": "DNA"},
            {"question": "Where does photosynthesis happen?", "answer": "In chloroplasts"},
        ]
    }


@pytest.fixture
def quiz_reply():
    return {
        "questions": [
            {
                "question": f"Question {i + 1}?",
                "options": ["A", "B", "C", "D"],
                "correct_answer": correct,
                "explanation": f"Option {correct} is right",
                "difficulty": "medium",
            }
            for i, correct in enumerate(QUIZ_KEY)
        ]
    }


@dataclass
class FakeLLM:
    json_reply: Any = field(default_factory=dict)
    text_reply: str = ""
    calls: list = field(default_factory=list)
    histories: list = field(default_factory=list)

    async def chat_json(self, system_prompt, user_prompt, max_tokens=2000, temperature=0.7):
        self.calls.append((system_prompt, user_prompt))
        if isinstance(self.json_reply, Exception):
            raise self.json_reply
        return self.json_reply

    async def chat_text(
        self, system_prompt, user_prompt, max_tokens=1000, temperature=0.5, history=None
    ):
        self.calls.append((system_prompt, user_prompt))
        self.histories.append(history)
        if isinstance(self.text_reply, Exception):
            raise self.text_reply
        return self.text_reply


@pytest.fixture
def fake_llm(monkeypatch):
    import studydeck.services.content_generator as content_generator

    llm = FakeLLM()
    monkeypatch.setattr(content_generator, "chat_json", llm.chat_json)
    monkeypatch.setattr(content_generator, "chat_text", llm.chat_text)
    return llm


@pytest.fixture
def client(tmp_path, monkeypatch):
    from studydeck import create_app

    monkeypatch.setattr(settings, "data_dir", tmp_path)
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def document(client):
    res = client.post(
        "/documents/",
        json={"title": "Cell Biology", "content": "Cells are the basic unit of life. " * 20},
    )
    assert res.status_code == 201
    return res.json()
