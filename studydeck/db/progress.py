"""
Aggregate queries behind the progress endpoints.

All timestamps are stored as UTC ISO-8601 strings, so the first ten
characters are the calendar day and plain string comparison orders them.
"""
from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

import aiosqlite

from studydeck.config import settings
from studydeck.db.sqlite import iso_timestamp, list_documents, list_quiz_attempts
from studydeck.models.progress import (
    Analytics,
    DailyDocumentActivity,
    DailyQuizPerformance,
    Dashboard,
    DifficultyStats,
    Goal,
    Overview,
    RecentActivity,
    WeeklyGoals,
)

STUDY_DAYS_WINDOW = 30
RECENT_LIMIT = 5


async def _scalar(db: aiosqlite.Connection, sql: str, params: tuple) -> int | float | None:
    cursor = await db.execute(sql, params)
    row = await cursor.fetchone()
    return row[0] if row else None


async def _count(db: aiosqlite.Connection, sql: str, params: tuple) -> int:
    return int(await _scalar(db, sql, params) or 0)


def week_start(now: datetime) -> datetime:
    """Sunday 00:00 UTC of the week containing now."""
    today = now.astimezone(timezone.utc).date()
    sunday = today - timedelta(days=(today.weekday() + 1) % 7)
    return datetime.combine(sunday, time.min, tzinfo=timezone.utc)


async def get_dashboard(
    db: aiosqlite.Connection, user_id: str, now: datetime | None = None
) -> Dashboard:
    now = now or datetime.now(timezone.utc)
    uid = (user_id,)

    avg_score = await _scalar(
        db, "SELECT AVG(score) FROM quiz_attempts WHERE user_id = ?", uid
    )

    cutoff = iso_timestamp(now - timedelta(days=STUDY_DAYS_WINDOW))
    study_days = await _count(
        db,
        """SELECT COUNT(DISTINCT day) FROM (
               SELECT substr(created_at, 1, 10) AS day FROM documents
               WHERE user_id = ? AND created_at >= ?
               UNION
               SELECT substr(completed_at, 1, 10) FROM quiz_attempts
               WHERE user_id = ? AND completed_at >= ?
               UNION
               SELECT substr(last_reviewed, 1, 10) FROM flashcards
               WHERE user_id = ? AND last_reviewed >= ?
               UNION
               SELECT substr(updated_at, 1, 10) FROM chat_history
               WHERE user_id = ? AND updated_at >= ?
           )""",
        (user_id, cutoff) * 4,
    )

    overview = Overview(
        total_documents=await _count(
            db, "SELECT COUNT(*) FROM documents WHERE user_id = ?", uid
        ),
        total_flashcards=await _count(
            db, "SELECT COUNT(*) FROM flashcards WHERE user_id = ?", uid
        ),
        total_quizzes=await _count(
            db, "SELECT COUNT(*) FROM quizzes WHERE user_id = ?", uid
        ),
        total_quiz_attempts=await _count(
            db, "SELECT COUNT(*) FROM quiz_attempts WHERE user_id = ?", uid
        ),
        favorite_flashcards=await _count(
            db,
            "SELECT COUNT(*) FROM flashcards WHERE user_id = ? AND is_favorite = 1",
            uid,
        ),
        due_flashcards=await _count(
            db,
            "SELECT COUNT(*) FROM flashcards WHERE user_id = ? AND next_review <= ?",
            (user_id, iso_timestamp(now)),
        ),
        average_quiz_score=int(avg_score + 0.5) if avg_score is not None else 0,
        study_days_this_month=study_days,
    )

    recent_docs, _ = await list_documents(db, user_id, limit=RECENT_LIMIT)
    recent_attempts = await list_quiz_attempts(db, user_id, limit=RECENT_LIMIT)

    return Dashboard(
        overview=overview,
        recent_activity=RecentActivity(
            documents=recent_docs, quiz_attempts=recent_attempts
        ),
    )


async def get_analytics(
    db: aiosqlite.Connection,
    user_id: str,
    period_days: int = 30,
    now: datetime | None = None,
) -> Analytics:
    now = now or datetime.now(timezone.utc)
    since = iso_timestamp(now - timedelta(days=period_days))

    cursor = await db.execute(
        """SELECT substr(completed_at, 1, 10) AS date,
                  AVG(score) AS avg_score,
                  COUNT(*) AS total_attempts
           FROM quiz_attempts
           WHERE user_id = ? AND completed_at >= ?
           GROUP BY date
           ORDER BY date ASC""",
        (user_id, since),
    )
    quiz_performance = [
        DailyQuizPerformance(
            date=r["date"], avg_score=round(r["avg_score"], 2), total_attempts=r["total_attempts"]
        )
        for r in await cursor.fetchall()
    ]

    cursor = await db.execute(
        """SELECT difficulty,
                  COUNT(*) AS count,
                  AVG(CASE WHEN review_count = 0 THEN 0
                           ELSE correct_count * 100.0 / review_count END) AS avg_success_rate
           FROM flashcards
           WHERE user_id = ?
           GROUP BY difficulty
           ORDER BY difficulty ASC""",
        (user_id,),
    )
    flashcard_stats = [
        DifficultyStats(
            difficulty=r["difficulty"],
            count=r["count"],
            avg_success_rate=round(r["avg_success_rate"] or 0.0, 2),
        )
        for r in await cursor.fetchall()
    ]

    cursor = await db.execute(
        """SELECT substr(created_at, 1, 10) AS date,
                  COUNT(*) AS count,
                  SUM(LENGTH(content)) AS total_chars
           FROM documents
           WHERE user_id = ? AND created_at >= ?
           GROUP BY date
           ORDER BY date ASC""",
        (user_id, since),
    )
    document_activity = [
        DailyDocumentActivity(date=r["date"], count=r["count"], total_chars=r["total_chars"] or 0)
        for r in await cursor.fetchall()
    ]

    return Analytics(
        period_days=period_days,
        quiz_performance=quiz_performance,
        flashcard_stats=flashcard_stats,
        document_activity=document_activity,
    )


async def get_weekly_goals(
    db: aiosqlite.Connection, user_id: str, now: datetime | None = None
) -> WeeklyGoals:
    start = week_start(now or datetime.now(timezone.utc))
    since = iso_timestamp(start)

    documents = await _count(
        db,
        "SELECT COUNT(*) FROM documents WHERE user_id = ? AND created_at >= ?",
        (user_id, since),
    )
    quizzes = await _count(
        db,
        "SELECT COUNT(*) FROM quiz_attempts WHERE user_id = ? AND completed_at >= ?",
        (user_id, since),
    )
    flashcards = await _count(
        db,
        "SELECT COUNT(*) FROM flashcards WHERE user_id = ? AND last_reviewed >= ?",
        (user_id, since),
    )

    return WeeklyGoals(
        week_start=start.date().isoformat(),
        documents=Goal(target=settings.goal_documents_per_week, current=documents),
        quizzes=Goal(target=settings.goal_quizzes_per_week, current=quizzes),
        flashcards=Goal(target=settings.goal_flashcards_per_week, current=flashcards),
    )
