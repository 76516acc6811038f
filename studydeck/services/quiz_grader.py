"""
Quiz grading.

grade() compares a submitted answer list against the quiz's answer key and
returns the attempt record to store plus a detailed, read-only results view.
"""
from __future__ import annotations

from collections.abc import Sequence

from studydeck.models.common import round_percent
from studydeck.models.quiz import (
    UNANSWERED,
    AttemptAnswer,
    DetailedAnswer,
    Quiz,
    QuizAttemptCreate,
    QuizResults,
)


class InvalidInputError(ValueError):
    """Raised when a submission does not line up with the quiz's questions."""


def grade(
    quiz: Quiz,
    submitted_answers: Sequence[int | None],
    time_spent: int,
) -> tuple[QuizAttemptCreate, QuizResults]:
    total = len(quiz.questions)
    if len(submitted_answers) != total:
        raise InvalidInputError(
            f"Expected {total} answers, got {len(submitted_answers)}"
        )

    answers: list[AttemptAnswer] = []
    detailed: list[DetailedAnswer] = []
    correct = 0

    for index, (question, selected) in enumerate(zip(quiz.questions, submitted_answers)):
        if selected is None:
            selected = UNANSWERED
        is_correct = selected == question.correct_answer
        if is_correct:
            correct += 1

        answers.append(
            AttemptAnswer(
                question_index=index,
                selected_answer=selected,
                is_correct=is_correct,
            )
        )
        detailed.append(
            DetailedAnswer(
                question_index=index,
                selected_answer=selected,
                is_correct=is_correct,
                question=question.question,
                options=list(question.options),
                correct_answer=question.correct_answer,
                explanation=question.explanation,
            )
        )

    score = round_percent(correct, total)

    attempt = QuizAttemptCreate(
        quiz_id=quiz.id,
        answers=answers,
        score=score,
        total_questions=total,
        correct_answers=correct,
        time_spent=time_spent,
    )
    results = QuizResults(
        score=score,
        correct_answers=correct,
        total_questions=total,
        percentage=score,
        answers=detailed,
    )
    return attempt, results
