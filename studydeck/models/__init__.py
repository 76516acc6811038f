from studydeck.models.chat import Chat, ChatMessage, ChatRole, ChatSummary
from studydeck.models.common import Difficulty
from studydeck.models.document import (
    Document,
    DocumentCreate,
    DocumentList,
    DocumentSummary,
    DocumentUpdate,
)
from studydeck.models.flashcard import (
    Flashcard,
    FlashcardDraft,
    FlashcardList,
    ReviewRequest,
)
from studydeck.models.quiz import (
    UNANSWERED,
    AttemptAnswer,
    DetailedAnswer,
    Question,
    Quiz,
    QuizAttempt,
    QuizAttemptCreate,
    QuizResults,
)

__all__ = [
    "UNANSWERED",
    "AttemptAnswer",
    "Chat",
    "ChatMessage",
    "ChatRole",
    "ChatSummary",
    "DetailedAnswer",
    "Difficulty",
    "Document",
    "DocumentCreate",
    "DocumentList",
    "DocumentSummary",
    "DocumentUpdate",
    "Flashcard",
    "FlashcardDraft",
    "FlashcardList",
    "Question",
    "Quiz",
    "QuizAttempt",
    "QuizAttemptCreate",
    "QuizResults",
    "ReviewRequest",
]
