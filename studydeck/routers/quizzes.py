"""
Quiz router.

Endpoints:
  POST   /quizzes/generate/{document_id}  - generate a multiple-choice quiz via the LLM
  GET    /quizzes                         - all quizzes
  GET    /quizzes/document/{document_id}  - quizzes for one document
  GET    /quizzes/attempts/all            - latest attempts across all quizzes
  GET    /quizzes/{id}                    - single quiz
  POST   /quizzes/{id}/attempt            - grade and store a submission
  GET    /quizzes/{id}/attempts           - attempts for one quiz
  DELETE /quizzes/{id}                    - delete quiz and its attempts
"""
from __future__ import annotations

import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from studydeck.db.sqlite import (
    create_quiz,
    delete_quiz,
    get_db,
    get_document,
    get_quiz,
    insert_quiz_attempt,
    list_quiz_attempts,
    list_quizzes,
)
from studydeck.dependencies import get_user_id
from studydeck.models.quiz import (
    AttemptResponse,
    AttemptSubmit,
    GenerateQuizRequest,
    GenerateQuizResponse,
    Quiz,
    QuizAttempt,
    QuizCreate,
)
from studydeck.services.content_generator import (
    ContentGenerationError,
    generate_quiz_questions,
)
from studydeck.services.llm_service import LLMUnavailableError
from studydeck.services.quiz_grader import InvalidInputError, grade

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/generate/{document_id}", response_model=GenerateQuizResponse)
async def generate(
    document_id: str,
    body: GenerateQuizRequest | None = None,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> GenerateQuizResponse:
    body = body or GenerateQuizRequest()
    document = await get_document(db, user_id, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")

    try:
        questions = await generate_quiz_questions(
            document, body.question_count, body.difficulty
        )
    except LLMUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except ContentGenerationError as e:
        logger.warning("Quiz generation failed for document %s: %s", document_id, e)
        raise HTTPException(status_code=502, detail=str(e)) from e

    quiz = await create_quiz(
        db,
        user_id,
        QuizCreate(
            document_id=document_id,
            title=f"{document.title} - Quiz",
            questions=questions,
            difficulty=body.difficulty,
            time_limit=body.time_limit,
            category=document.title,
        ),
    )
    return GenerateQuizResponse(message="Quiz generated successfully", quiz=quiz)


@router.get("/", response_model=list[Quiz])
async def list_all(
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> list[Quiz]:
    return await list_quizzes(db, user_id)


@router.get("/document/{document_id}", response_model=list[Quiz])
async def list_for_document(
    document_id: str,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> list[Quiz]:
    return await list_quizzes(db, user_id, doc_id=document_id)


@router.get("/attempts/all", response_model=list[QuizAttempt])
async def list_all_attempts(
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> list[QuizAttempt]:
    return await list_quiz_attempts(db, user_id, limit=limit)


@router.get("/{quiz_id}", response_model=Quiz)
async def get_one(
    quiz_id: str,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Quiz:
    quiz = await get_quiz(db, user_id, quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


@router.post("/{quiz_id}/attempt", response_model=AttemptResponse)
async def submit_attempt(
    quiz_id: str,
    body: AttemptSubmit,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> AttemptResponse:
    quiz = await get_quiz(db, user_id, quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")

    try:
        graded, results = grade(quiz, body.answers, body.time_spent)
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    attempt = await insert_quiz_attempt(db, user_id, graded)
    logger.info(
        "Quiz %s attempt stored: %d/%d (%d%%)",
        quiz_id, graded.correct_answers, graded.total_questions, graded.score,
    )
    return AttemptResponse(
        message="Quiz submitted successfully", attempt=attempt, results=results
    )


@router.get("/{quiz_id}/attempts", response_model=list[QuizAttempt])
async def list_attempts(
    quiz_id: str,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> list[QuizAttempt]:
    return await list_quiz_attempts(db, user_id, quiz_id=quiz_id)


@router.delete("/{quiz_id}", status_code=204)
async def remove_quiz(
    quiz_id: str,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> None:
    deleted = await delete_quiz(db, user_id, quiz_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Quiz not found")
