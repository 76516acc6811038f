"""
Flashcard router.

Endpoints:
  POST   /flashcards/generate/{document_id}  - generate cards from a document via the LLM
  GET    /flashcards                         - list cards (favorite / difficulty filters)
  GET    /flashcards/due                     - cards whose next review has passed
  GET    /flashcards/document/{document_id}  - cards for one document
  GET    /flashcards/{id}                    - single card
  PATCH  /flashcards/{id}/favorite           - toggle favorite
  POST   /flashcards/{id}/review             - record a review, reschedule the card
  DELETE /flashcards/{id}                    - delete card
"""
from __future__ import annotations

import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from studydeck.db.sqlite import (
    delete_flashcard,
    get_db,
    get_document,
    get_due_flashcards,
    get_flashcard,
    insert_flashcards,
    list_flashcards,
    save_flashcard_review,
    toggle_flashcard_favorite,
)
from studydeck.dependencies import get_user_id
from studydeck.models.common import Difficulty
from studydeck.models.flashcard import (
    Flashcard,
    FlashcardList,
    GenerateFlashcardsRequest,
    GenerateFlashcardsResponse,
    ReviewRequest,
)
from studydeck.services.content_generator import ContentGenerationError, generate_flashcards
from studydeck.services.llm_service import LLMUnavailableError
from studydeck.services.review_scheduler import record_review

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/generate/{document_id}", response_model=GenerateFlashcardsResponse)
async def generate(
    document_id: str,
    body: GenerateFlashcardsRequest | None = None,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> GenerateFlashcardsResponse:
    body = body or GenerateFlashcardsRequest()
    document = await get_document(db, user_id, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")

    try:
        drafts = await generate_flashcards(document, body.count, body.difficulty)
    except LLMUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except ContentGenerationError as e:
        logger.warning("Flashcard generation failed for document %s: %s", document_id, e)
        raise HTTPException(status_code=502, detail=str(e)) from e

    cards = await insert_flashcards(db, user_id, document, drafts, body.difficulty)
    return GenerateFlashcardsResponse(
        message="Flashcards generated successfully", flashcards=cards
    )


@router.get("/", response_model=FlashcardList)
async def list_cards(
    favorite: bool = Query(default=False),
    difficulty: Difficulty | None = Query(default=None),
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardList:
    items = await list_flashcards(db, user_id, favorite=favorite, difficulty=difficulty)
    return FlashcardList(items=items, total=len(items))


@router.get("/due", response_model=FlashcardList)
async def get_due(
    limit: int = Query(default=20, ge=1, le=100),
    doc_id: str | None = Query(default=None),
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardList:
    """Return cards due for review now, most overdue first."""
    items = await get_due_flashcards(db, user_id, limit=limit, doc_id=doc_id)
    return FlashcardList(items=items, total=len(items))


@router.get("/document/{document_id}", response_model=FlashcardList)
async def list_document_cards(
    document_id: str,
    favorite: bool = Query(default=False),
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> FlashcardList:
    items = await list_flashcards(db, user_id, doc_id=document_id, favorite=favorite)
    return FlashcardList(items=items, total=len(items))


@router.get("/{card_id}", response_model=Flashcard)
async def get_card(
    card_id: str,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    card = await get_flashcard(db, user_id, card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return card


@router.patch("/{card_id}/favorite", response_model=Flashcard)
async def toggle_favorite(
    card_id: str,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    card = await toggle_flashcard_favorite(db, user_id, card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    return card


@router.post("/{card_id}/review", response_model=Flashcard)
async def review_card(
    card_id: str,
    body: ReviewRequest,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Flashcard:
    """Record a correct/incorrect review and schedule the next one."""
    card = await get_flashcard(db, user_id, card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Flashcard not found")

    reviewed = record_review(card, body.correct)
    updated = await save_flashcard_review(db, reviewed)
    if not updated:
        # deleted between the read and the write
        raise HTTPException(status_code=404, detail="Flashcard not found")

    logger.debug(
        "Card %s reviewed (correct=%s), next review %s",
        card_id, body.correct, updated.next_review,
    )
    return updated


@router.delete("/{card_id}", status_code=204)
async def remove_card(
    card_id: str,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> None:
    deleted = await delete_flashcard(db, user_id, card_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Flashcard not found")
