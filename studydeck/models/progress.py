from pydantic import BaseModel

from studydeck.models.document import DocumentSummary
from studydeck.models.quiz import QuizAttempt


class Overview(BaseModel):
    total_documents: int
    total_flashcards: int
    total_quizzes: int
    total_quiz_attempts: int
    favorite_flashcards: int
    due_flashcards: int
    average_quiz_score: int
    study_days_this_month: int


class RecentActivity(BaseModel):
    documents: list[DocumentSummary]
    quiz_attempts: list[QuizAttempt]


class Dashboard(BaseModel):
    overview: Overview
    recent_activity: RecentActivity


class DailyQuizPerformance(BaseModel):
    date: str
    avg_score: float
    total_attempts: int


class DifficultyStats(BaseModel):
    difficulty: str
    count: int
    avg_success_rate: float


class DailyDocumentActivity(BaseModel):
    date: str
    count: int
    total_chars: int


class Analytics(BaseModel):
    period_days: int
    quiz_performance: list[DailyQuizPerformance]
    flashcard_stats: list[DifficultyStats]
    document_activity: list[DailyDocumentActivity]


class Goal(BaseModel):
    target: int
    current: int


class WeeklyGoals(BaseModel):
    week_start: str
    documents: Goal
    quizzes: Goal
    flashcards: Goal
