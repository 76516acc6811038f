"""
AI study assistant router.

Endpoints:
  POST /ai/chat/{document_id}          - ask a question about a document, optionally continuing a chat
  GET  /ai/chat-history/{document_id}  - chats about one document, most recent first
  GET  /ai/chat/{chat_id}              - one chat with all of its messages
  POST /ai/explain/{document_id}       - explain a concept using the document as source
"""
from __future__ import annotations

import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from studydeck.db.sqlite import get_chat, get_db, get_document, list_chats, save_chat_exchange
from studydeck.dependencies import get_user_id
from studydeck.models.chat import (
    Chat,
    ChatRequest,
    ChatResponse,
    ChatSummary,
    ExplainRequest,
    ExplainResponse,
)
from studydeck.services.content_generator import (
    ContentGenerationError,
    answer_question,
    explain_concept,
)
from studydeck.services.llm_service import LLMUnavailableError

logger = logging.getLogger(__name__)
router = APIRouter()

CHAT_TITLE_LENGTH = 50


def chat_title(message: str) -> str:
    if len(message) <= CHAT_TITLE_LENGTH:
        return message
    return message[:CHAT_TITLE_LENGTH] + "..."


@router.post("/chat/{document_id}", response_model=ChatResponse)
async def chat(
    document_id: str,
    body: ChatRequest,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> ChatResponse:
    document = await get_document(db, user_id, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")

    existing = None
    if body.chat_id:
        existing = await get_chat(db, user_id, body.chat_id)
        if not existing or existing.document_id != document_id:
            raise HTTPException(status_code=404, detail="Chat not found")

    try:
        answer = await answer_question(
            document, body.message, existing.messages if existing else None
        )
    except LLMUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except ContentGenerationError as e:
        logger.warning("Chat reply failed for document %s: %s", document_id, e)
        raise HTTPException(status_code=502, detail=str(e)) from e

    saved = await save_chat_exchange(
        db,
        user_id,
        document_id,
        existing.id if existing else None,
        chat_title(body.message),
        body.message,
        answer,
    )
    return ChatResponse(response=answer, chat_id=saved.id)


@router.get("/chat-history/{document_id}", response_model=list[ChatSummary])
async def chat_history(
    document_id: str,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> list[ChatSummary]:
    if not await get_document(db, user_id, document_id):
        raise HTTPException(status_code=404, detail="Document not found")
    return await list_chats(db, user_id, document_id)


@router.get("/chat/{chat_id}", response_model=Chat)
async def get_one_chat(
    chat_id: str,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Chat:
    found = await get_chat(db, user_id, chat_id)
    if not found:
        raise HTTPException(status_code=404, detail="Chat not found")
    return found


@router.post("/explain/{document_id}", response_model=ExplainResponse)
async def explain(
    document_id: str,
    body: ExplainRequest,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> ExplainResponse:
    document = await get_document(db, user_id, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")

    try:
        explanation = await explain_concept(document, body.concept)
    except LLMUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except ContentGenerationError as e:
        logger.warning("Explanation failed for document %s: %s", document_id, e)
        raise HTTPException(status_code=502, detail=str(e)) from e

    return ExplainResponse(concept=body.concept, explanation=explanation)
