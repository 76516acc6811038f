"""
Review scheduling for flashcards.

A correct review pushes the card out by two days per lifetime correct answer,
capped at MAX_INTERVAL_DAYS. A missed card comes back the next day.

The interval follows the lifetime correct_count rather than a streak, so a
miss never resets the spacing a card has already earned. Unlike SM-2 there
is no ease factor.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from studydeck.models.flashcard import Flashcard

DAYS_PER_CORRECT = 2
MAX_INTERVAL_DAYS = 30
RETRY_INTERVAL_DAYS = 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def days_until_next_review(correct_count: int, was_correct: bool) -> int:
    """Interval in days after a review; correct_count is already updated."""
    if not was_correct:
        return RETRY_INTERVAL_DAYS
    return min(correct_count * DAYS_PER_CORRECT, MAX_INTERVAL_DAYS)


def record_review(
    card: Flashcard,
    was_correct: bool,
    now: datetime | None = None,
) -> Flashcard:
    """
    Apply one review to a card and return the updated copy.

    The input card is left untouched; persisting the result is up to the caller.
    """
    now = now or utcnow()
    review_count = card.review_count + 1
    correct_count = card.correct_count + 1 if was_correct else card.correct_count
    days = days_until_next_review(correct_count, was_correct)

    return card.model_copy(
        update={
            "review_count": review_count,
            "correct_count": correct_count,
            "last_reviewed": now,
            "next_review": now + timedelta(days=days),
        }
    )
