from enum import Enum
from typing import Annotated

from pydantic import BaseModel, StringConstraints

Prompt = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=4000)]


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    role: ChatRole
    content: str
    created_at: str


class Chat(BaseModel):
    id: str
    user_id: str
    document_id: str
    title: str
    messages: list[ChatMessage]
    created_at: str
    updated_at: str


class ChatSummary(BaseModel):
    """Chat listing entry without the message bodies."""

    id: str
    document_id: str
    title: str
    message_count: int
    created_at: str
    updated_at: str


class ChatRequest(BaseModel):
    message: Prompt
    chat_id: str | None = None


class ChatResponse(BaseModel):
    response: str
    chat_id: str


class ExplainRequest(BaseModel):
    concept: Prompt


class ExplainResponse(BaseModel):
    concept: str
    explanation: str
