from __future__ import annotations

from pydantic import BaseModel, Field

from studydeck.models.common import Difficulty

UNANSWERED = -1


class Question(BaseModel):
    question: str
    options: list[str]          # exactly 4 when produced by the generator
    correct_answer: int         # index into options
    explanation: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM


class Quiz(BaseModel):
    id: str
    user_id: str
    document_id: str
    title: str
    questions: list[Question]
    difficulty: Difficulty = Difficulty.MEDIUM
    time_limit: int = 30        # minutes
    category: str = "General"
    created_at: str


class QuizCreate(BaseModel):
    document_id: str
    title: str
    questions: list[Question]
    difficulty: Difficulty = Difficulty.MEDIUM
    time_limit: int = 30
    category: str = "General"


class GenerateQuizRequest(BaseModel):
    question_count: int = Field(default=5, ge=1, le=30)
    difficulty: Difficulty = Difficulty.MEDIUM
    time_limit: int = Field(default=30, ge=1)


class GenerateQuizResponse(BaseModel):
    message: str
    quiz: Quiz


class AttemptAnswer(BaseModel):
    question_index: int
    selected_answer: int        # UNANSWERED (-1) when skipped
    is_correct: bool


class QuizAttemptCreate(BaseModel):
    quiz_id: str
    answers: list[AttemptAnswer]
    score: int                  # percent, 0..100
    total_questions: int
    correct_answers: int
    time_spent: int             # seconds


class QuizAttempt(QuizAttemptCreate):
    id: str
    user_id: str
    quiz_title: str | None = None
    completed_at: str


class DetailedAnswer(AttemptAnswer):
    question: str
    options: list[str]
    correct_answer: int
    explanation: str


class QuizResults(BaseModel):
    score: int
    correct_answers: int
    total_questions: int
    percentage: int
    answers: list[DetailedAnswer]


class AttemptSubmit(BaseModel):
    answers: list[int | None]
    time_spent: int = Field(default=0, ge=0)


class AttemptResponse(BaseModel):
    message: str
    attempt: QuizAttempt
    results: QuizResults
