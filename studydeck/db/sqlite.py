import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from studydeck.config import settings
from studydeck.models.common import Difficulty
from studydeck.models.chat import Chat, ChatMessage, ChatRole, ChatSummary
from studydeck.models.document import (
    Document,
    DocumentCreate,
    DocumentSummary,
    DocumentUpdate,
)
from studydeck.models.flashcard import Flashcard, FlashcardDraft
from studydeck.models.quiz import Quiz, QuizAttempt, QuizAttemptCreate, QuizCreate

_db_path: Path | None = None

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS documents (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    title       TEXT NOT NULL,
    content     TEXT NOT NULL,
    summary     TEXT NOT NULL DEFAULT '',
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_documents_user ON documents(user_id, created_at);

CREATE TABLE IF NOT EXISTS flashcards (
    id            TEXT PRIMARY KEY,
    user_id       TEXT NOT NULL,
    document_id   TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    question      TEXT NOT NULL,
    answer        TEXT NOT NULL,
    difficulty    TEXT NOT NULL DEFAULT 'medium',
    category      TEXT NOT NULL DEFAULT 'General',
    is_favorite   INTEGER NOT NULL DEFAULT 0,
    review_count  INTEGER NOT NULL DEFAULT 0,
    correct_count INTEGER NOT NULL DEFAULT 0,
    last_reviewed TEXT,
    next_review   TEXT NOT NULL,
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL,
    CHECK (correct_count <= review_count)
);
CREATE INDEX IF NOT EXISTS idx_flashcards_user ON flashcards(user_id, created_at);
CREATE INDEX IF NOT EXISTS idx_flashcards_review ON flashcards(user_id, next_review);

CREATE TABLE IF NOT EXISTS quizzes (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    document_id TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    title       TEXT NOT NULL,
    questions   TEXT NOT NULL,
    difficulty  TEXT NOT NULL DEFAULT 'medium',
    time_limit  INTEGER NOT NULL DEFAULT 30,
    category    TEXT NOT NULL DEFAULT 'General',
    created_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_quizzes_user ON quizzes(user_id, created_at);

CREATE TABLE IF NOT EXISTS quiz_attempts (
    id              TEXT PRIMARY KEY,
    user_id         TEXT NOT NULL,
    quiz_id         TEXT NOT NULL REFERENCES quizzes(id) ON DELETE CASCADE,
    answers         TEXT NOT NULL,
    score           INTEGER NOT NULL,
    total_questions INTEGER NOT NULL,
    correct_answers INTEGER NOT NULL,
    time_spent      INTEGER NOT NULL,
    completed_at    TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_attempts_quiz ON quiz_attempts(quiz_id);
CREATE INDEX IF NOT EXISTS idx_attempts_user ON quiz_attempts(user_id, completed_at);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
INSERT OR IGNORE INTO schema_version(version) VALUES (1);
"""

MIGRATION_V2_SQL = """
ALTER TABLE documents ADD COLUMN tags TEXT NOT NULL DEFAULT '[]';
ALTER TABLE documents ADD COLUMN is_favorite INTEGER NOT NULL DEFAULT 0;

CREATE TABLE IF NOT EXISTS chat_history (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    document_id TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    title       TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_chat_history_document
    ON chat_history(user_id, document_id, updated_at);

CREATE TABLE IF NOT EXISTS chat_messages (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    chat_id    TEXT NOT NULL REFERENCES chat_history(id) ON DELETE CASCADE,
    role       TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
    content    TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_chat_messages_chat ON chat_messages(chat_id, id);

INSERT OR IGNORE INTO schema_version(version) VALUES (2);
"""


async def init_sqlite(data_dir: Path) -> None:
    global _db_path
    _db_path = data_dir / settings.sqlite_filename
    async with aiosqlite.connect(_db_path) as db:
        await db.executescript(SCHEMA_SQL)
        cursor = await db.execute("SELECT MAX(version) FROM schema_version")
        current_version = (await cursor.fetchone())[0]
        if current_version < 2:
            # v2: document tags/favorites and per-document chat history
            await db.executescript(MIGRATION_V2_SQL)
        await db.commit()


async def get_db() -> AsyncIterator[aiosqlite.Connection]:
    assert _db_path is not None, "SQLite not initialized"
    async with aiosqlite.connect(_db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys=ON")
        yield db


def iso_timestamp(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).replace(microsecond=0).isoformat()


def _now() -> str:
    return iso_timestamp(datetime.now(timezone.utc))


# --- Documents ---


def _row_to_document(row: aiosqlite.Row) -> Document:
    d = dict(row)
    d["tags"] = json.loads(d["tags"])
    d["is_favorite"] = bool(d["is_favorite"])
    return Document(**d)


def _row_to_document_summary(row: aiosqlite.Row) -> DocumentSummary:
    d = dict(row)
    d["tags"] = json.loads(d["tags"])
    d["is_favorite"] = bool(d["is_favorite"])
    return DocumentSummary(**d)


async def create_document(
    db: aiosqlite.Connection, user_id: str, doc: DocumentCreate
) -> Document:
    doc_id = str(uuid.uuid4())
    now = _now()
    await db.execute(
        """INSERT INTO documents (id, user_id, title, content, tags, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (doc_id, user_id, doc.title, doc.content, json.dumps(doc.tags), now, now),
    )
    await db.commit()
    return await get_document(db, user_id, doc_id)  # type: ignore[return-value]


async def get_document(
    db: aiosqlite.Connection, user_id: str, doc_id: str
) -> Document | None:
    cursor = await db.execute(
        "SELECT * FROM documents WHERE id = ? AND user_id = ?", (doc_id, user_id)
    )
    row = await cursor.fetchone()
    if row is None:
        return None
    return _row_to_document(row)


_DOCUMENT_SUMMARY_COLUMNS = (
    "id, title, summary, tags, is_favorite, LENGTH(content) AS content_length, created_at"
)


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def list_documents(
    db: aiosqlite.Connection,
    user_id: str,
    offset: int = 0,
    limit: int = 50,
    search: str | None = None,
    tags: list[str] | None = None,
    favorite: bool = False,
) -> tuple[list[DocumentSummary], int]:
    """Page through a user's documents, newest first.

    search matches title, content or tag text (case-insensitive for ASCII);
    tags keeps documents carrying at least one of the given tags.
    """
    clauses = ["user_id = ?"]
    params: list = [user_id]
    if search:
        pattern = _like_pattern(search)
        clauses.append(
            "(title LIKE ? ESCAPE '\\' OR content LIKE ? ESCAPE '\\' OR tags LIKE ? ESCAPE '\\')"
        )
        params.extend([pattern, pattern, pattern])
    if tags:
        placeholders = ", ".join("?" for _ in tags)
        clauses.append(
            "EXISTS (SELECT 1 FROM json_each(documents.tags) "
            f"WHERE json_each.value IN ({placeholders}))"
        )
        params.extend(tags)
    if favorite:
        clauses.append("is_favorite = 1")
    where = " AND ".join(clauses)

    cursor = await db.execute(
        f"SELECT COUNT(*) FROM documents WHERE {where}", params  # noqa: S608
    )
    total = (await cursor.fetchone())[0]

    cursor = await db.execute(
        f"SELECT {_DOCUMENT_SUMMARY_COLUMNS} FROM documents "  # noqa: S608
        f"WHERE {where} ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
        [*params, limit, offset],
    )
    rows = await cursor.fetchall()
    return [_row_to_document_summary(r) for r in rows], total


async def update_document(
    db: aiosqlite.Connection, user_id: str, doc_id: str, updates: DocumentUpdate
) -> Document | None:
    fields = updates.model_dump(exclude_none=True)
    if not fields:
        return await get_document(db, user_id, doc_id)

    if "tags" in fields:
        fields["tags"] = json.dumps(fields["tags"])
    if "is_favorite" in fields:
        fields["is_favorite"] = int(fields["is_favorite"])

    fields["updated_at"] = _now()
    set_clause = ", ".join(f"{k} = ?" for k in fields)
    values = list(fields.values()) + [doc_id, user_id]

    await db.execute(
        f"UPDATE documents SET {set_clause} WHERE id = ? AND user_id = ?",  # noqa: S608
        values,
    )
    await db.commit()
    return await get_document(db, user_id, doc_id)


async def update_document_summary(
    db: aiosqlite.Connection, user_id: str, doc_id: str, summary: str
) -> Document | None:
    await db.execute(
        "UPDATE documents SET summary = ?, updated_at = ? WHERE id = ? AND user_id = ?",
        (summary, _now(), doc_id, user_id),
    )
    await db.commit()
    return await get_document(db, user_id, doc_id)


async def delete_document(db: aiosqlite.Connection, user_id: str, doc_id: str) -> bool:
    cursor = await db.execute(
        "DELETE FROM documents WHERE id = ? AND user_id = ?", (doc_id, user_id)
    )
    await db.commit()
    return (cursor.rowcount or 0) > 0


# --- Flashcards ---


def _row_to_flashcard(row: aiosqlite.Row) -> Flashcard:
    d = dict(row)
    d["is_favorite"] = bool(d["is_favorite"])
    return Flashcard(**d)


async def insert_flashcards(
    db: aiosqlite.Connection,
    user_id: str,
    document: Document,
    drafts: list[FlashcardDraft],
    difficulty: Difficulty,
) -> list[Flashcard]:
    """Insert generated cards for a document. New cards are due immediately."""
    now = _now()
    card_ids: list[str] = []
    for draft in drafts:
        card_id = str(uuid.uuid4())
        card_ids.append(card_id)
        await db.execute(
            """INSERT INTO flashcards
               (id, user_id, document_id, question, answer, difficulty, category,
                next_review, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                card_id,
                user_id,
                document.id,
                draft.question,
                draft.answer,
                difficulty.value,
                document.title,
                now,
                now,
                now,
            ),
        )
    await db.commit()

    cards = []
    for card_id in card_ids:
        card = await get_flashcard(db, user_id, card_id)
        if card:
            cards.append(card)
    return cards


async def get_flashcard(
    db: aiosqlite.Connection, user_id: str, card_id: str
) -> Flashcard | None:
    cursor = await db.execute(
        "SELECT * FROM flashcards WHERE id = ? AND user_id = ?", (card_id, user_id)
    )
    row = await cursor.fetchone()
    return _row_to_flashcard(row) if row else None


async def list_flashcards(
    db: aiosqlite.Connection,
    user_id: str,
    doc_id: str | None = None,
    favorite: bool = False,
    difficulty: Difficulty | None = None,
) -> list[Flashcard]:
    clauses = ["user_id = ?"]
    params: list = [user_id]
    if doc_id:
        clauses.append("document_id = ?")
        params.append(doc_id)
    if favorite:
        clauses.append("is_favorite = 1")
    if difficulty:
        clauses.append("difficulty = ?")
        params.append(difficulty.value)

    cursor = await db.execute(
        f"SELECT * FROM flashcards WHERE {' AND '.join(clauses)} "  # noqa: S608
        "ORDER BY created_at DESC, rowid DESC",
        params,
    )
    rows = await cursor.fetchall()
    return [_row_to_flashcard(r) for r in rows]


async def get_due_flashcards(
    db: aiosqlite.Connection,
    user_id: str,
    limit: int = 20,
    doc_id: str | None = None,
) -> list[Flashcard]:
    """Return cards whose next_review has passed, most overdue first."""
    now = _now()
    if doc_id:
        cursor = await db.execute(
            """SELECT * FROM flashcards
               WHERE user_id = ? AND next_review <= ? AND document_id = ?
               ORDER BY next_review ASC
               LIMIT ?""",
            (user_id, now, doc_id, limit),
        )
    else:
        cursor = await db.execute(
            """SELECT * FROM flashcards
               WHERE user_id = ? AND next_review <= ?
               ORDER BY next_review ASC
               LIMIT ?""",
            (user_id, now, limit),
        )
    rows = await cursor.fetchall()
    return [_row_to_flashcard(r) for r in rows]


async def save_flashcard_review(
    db: aiosqlite.Connection, card: Flashcard
) -> Flashcard | None:
    """Write the review fields of an already-scheduled card in one UPDATE."""
    await db.execute(
        """UPDATE flashcards
           SET review_count = ?, correct_count = ?, last_reviewed = ?,
               next_review = ?, updated_at = ?
           WHERE id = ? AND user_id = ?""",
        (
            card.review_count,
            card.correct_count,
            iso_timestamp(card.last_reviewed) if card.last_reviewed else None,
            iso_timestamp(card.next_review),
            _now(),
            card.id,
            card.user_id,
        ),
    )
    await db.commit()
    return await get_flashcard(db, card.user_id, card.id)


async def toggle_flashcard_favorite(
    db: aiosqlite.Connection, user_id: str, card_id: str
) -> Flashcard | None:
    cursor = await db.execute(
        """UPDATE flashcards
           SET is_favorite = 1 - is_favorite, updated_at = ?
           WHERE id = ? AND user_id = ?""",
        (_now(), card_id, user_id),
    )
    await db.commit()
    if not cursor.rowcount:
        return None
    return await get_flashcard(db, user_id, card_id)


async def delete_flashcard(db: aiosqlite.Connection, user_id: str, card_id: str) -> bool:
    cursor = await db.execute(
        "DELETE FROM flashcards WHERE id = ? AND user_id = ?", (card_id, user_id)
    )
    await db.commit()
    return (cursor.rowcount or 0) > 0


# --- Quizzes ---


def _row_to_quiz(row: aiosqlite.Row) -> Quiz:
    d = dict(row)
    d["questions"] = json.loads(d["questions"])
    return Quiz(**d)


async def create_quiz(db: aiosqlite.Connection, user_id: str, quiz: QuizCreate) -> Quiz:
    quiz_id = str(uuid.uuid4())
    questions = json.dumps([q.model_dump(mode="json") for q in quiz.questions])
    await db.execute(
        """INSERT INTO quizzes
           (id, user_id, document_id, title, questions, difficulty, time_limit,
            category, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            quiz_id,
            user_id,
            quiz.document_id,
            quiz.title,
            questions,
            quiz.difficulty.value,
            quiz.time_limit,
            quiz.category,
            _now(),
        ),
    )
    await db.commit()
    return await get_quiz(db, user_id, quiz_id)  # type: ignore[return-value]


async def get_quiz(db: aiosqlite.Connection, user_id: str, quiz_id: str) -> Quiz | None:
    cursor = await db.execute(
        "SELECT * FROM quizzes WHERE id = ? AND user_id = ?", (quiz_id, user_id)
    )
    row = await cursor.fetchone()
    return _row_to_quiz(row) if row else None


async def list_quizzes(
    db: aiosqlite.Connection, user_id: str, doc_id: str | None = None
) -> list[Quiz]:
    if doc_id:
        cursor = await db.execute(
            "SELECT * FROM quizzes WHERE user_id = ? AND document_id = ? "
            "ORDER BY created_at DESC, rowid DESC",
            (user_id, doc_id),
        )
    else:
        cursor = await db.execute(
            "SELECT * FROM quizzes WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
            (user_id,),
        )
    rows = await cursor.fetchall()
    return [_row_to_quiz(r) for r in rows]


async def delete_quiz(db: aiosqlite.Connection, user_id: str, quiz_id: str) -> bool:
    """Delete a quiz; its attempts go with it through ON DELETE CASCADE."""
    cursor = await db.execute(
        "DELETE FROM quizzes WHERE id = ? AND user_id = ?", (quiz_id, user_id)
    )
    await db.commit()
    return (cursor.rowcount or 0) > 0


# --- Quiz attempts ---


_ATTEMPT_SELECT = """SELECT a.*, q.title AS quiz_title
                     FROM quiz_attempts a
                     LEFT JOIN quizzes q ON q.id = a.quiz_id"""


def _row_to_attempt(row: aiosqlite.Row) -> QuizAttempt:
    d = dict(row)
    d["answers"] = json.loads(d["answers"])
    return QuizAttempt(**d)


async def insert_quiz_attempt(
    db: aiosqlite.Connection, user_id: str, attempt: QuizAttemptCreate
) -> QuizAttempt:
    attempt_id = str(uuid.uuid4())
    answers = json.dumps([a.model_dump() for a in attempt.answers])
    await db.execute(
        """INSERT INTO quiz_attempts
           (id, user_id, quiz_id, answers, score, total_questions,
            correct_answers, time_spent, completed_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            attempt_id,
            user_id,
            attempt.quiz_id,
            answers,
            attempt.score,
            attempt.total_questions,
            attempt.correct_answers,
            attempt.time_spent,
            _now(),
        ),
    )
    await db.commit()
    cursor = await db.execute(f"{_ATTEMPT_SELECT} WHERE a.id = ?", (attempt_id,))
    return _row_to_attempt(await cursor.fetchone())


async def list_quiz_attempts(
    db: aiosqlite.Connection,
    user_id: str,
    quiz_id: str | None = None,
    limit: int = 50,
) -> list[QuizAttempt]:
    if quiz_id:
        cursor = await db.execute(
            f"{_ATTEMPT_SELECT} WHERE a.user_id = ? AND a.quiz_id = ? "
            "ORDER BY a.completed_at DESC, a.rowid DESC LIMIT ?",
            (user_id, quiz_id, limit),
        )
    else:
        cursor = await db.execute(
            f"{_ATTEMPT_SELECT} WHERE a.user_id = ? "
            "ORDER BY a.completed_at DESC, a.rowid DESC LIMIT ?",
            (user_id, limit),
        )
    rows = await cursor.fetchall()
    return [_row_to_attempt(r) for r in rows]


# --- Chat history ---


async def save_chat_exchange(
    db: aiosqlite.Connection,
    user_id: str,
    document_id: str,
    chat_id: str | None,
    title: str,
    question: str,
    answer: str,
) -> Chat:
    """Store one question/answer turn, opening a new chat when chat_id is None.

    The chat row and both messages are written in a single transaction.
    """
    now = _now()
    if chat_id is None:
        chat_id = str(uuid.uuid4())
        await db.execute(
            """INSERT INTO chat_history (id, user_id, document_id, title, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (chat_id, user_id, document_id, title, now, now),
        )
    else:
        await db.execute(
            "UPDATE chat_history SET updated_at = ? WHERE id = ? AND user_id = ?",
            (now, chat_id, user_id),
        )
    await db.executemany(
        "INSERT INTO chat_messages (chat_id, role, content, created_at) VALUES (?, ?, ?, ?)",
        [
            (chat_id, ChatRole.USER.value, question, now),
            (chat_id, ChatRole.ASSISTANT.value, answer, now),
        ],
    )
    await db.commit()
    return await get_chat(db, user_id, chat_id)  # type: ignore[return-value]


async def get_chat(db: aiosqlite.Connection, user_id: str, chat_id: str) -> Chat | None:
    cursor = await db.execute(
        "SELECT * FROM chat_history WHERE id = ? AND user_id = ?", (chat_id, user_id)
    )
    row = await cursor.fetchone()
    if row is None:
        return None

    cursor = await db.execute(
        "SELECT role, content, created_at FROM chat_messages WHERE chat_id = ? ORDER BY id",
        (chat_id,),
    )
    messages = [ChatMessage(**dict(r)) for r in await cursor.fetchall()]
    return Chat(**dict(row), messages=messages)


async def list_chats(
    db: aiosqlite.Connection, user_id: str, document_id: str
) -> list[ChatSummary]:
    """Chats about one document, most recently active first."""
    cursor = await db.execute(
        """SELECT c.id, c.document_id, c.title, c.created_at, c.updated_at,
                  COUNT(m.id) AS message_count
           FROM chat_history c
           LEFT JOIN chat_messages m ON m.chat_id = c.id
           WHERE c.user_id = ? AND c.document_id = ?
           GROUP BY c.id
           ORDER BY c.updated_at DESC, MAX(m.id) DESC""",
        (user_id, document_id),
    )
    rows = await cursor.fetchall()
    return [ChatSummary(**dict(r)) for r in rows]
