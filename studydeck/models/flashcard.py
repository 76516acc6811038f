from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, computed_field, model_validator

from studydeck.models.common import Difficulty, round_percent


class Flashcard(BaseModel):
    id: str
    user_id: str
    document_id: str
    question: str
    answer: str
    difficulty: Difficulty = Difficulty.MEDIUM
    category: str = "General"
    is_favorite: bool = False
    review_count: int = Field(default=0, ge=0)
    correct_count: int = Field(default=0, ge=0)
    last_reviewed: datetime | None = None
    next_review: datetime
    created_at: str
    updated_at: str

    @model_validator(mode="after")
    def check_counts(self) -> Flashcard:
        if self.correct_count > self.review_count:
            raise ValueError("correct_count cannot exceed review_count")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success_rate(self) -> int:
        return round_percent(self.correct_count, self.review_count)


class FlashcardDraft(BaseModel):
    """A question/answer pair produced by the content generator, not yet stored."""

    question: str
    answer: str


class FlashcardList(BaseModel):
    items: list[Flashcard]
    total: int


class GenerateFlashcardsRequest(BaseModel):
    count: int = Field(default=10, ge=1, le=50)
    difficulty: Difficulty = Difficulty.MEDIUM


class GenerateFlashcardsResponse(BaseModel):
    message: str
    flashcards: list[Flashcard]


class ReviewRequest(BaseModel):
    correct: bool
