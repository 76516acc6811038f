import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from studydeck.db.sqlite import (
    create_document,
    delete_document,
    get_db,
    get_document,
    list_documents,
    update_document,
    update_document_summary,
)
from studydeck.dependencies import get_user_id
from studydeck.models.document import (
    Document,
    DocumentCreate,
    DocumentList,
    DocumentUpdate,
    normalize_tags,
)
from studydeck.services.content_generator import ContentGenerationError, summarize
from studydeck.services.llm_service import LLMUnavailableError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=Document, status_code=201)
async def create_doc(
    body: DocumentCreate,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    return await create_document(db, user_id, body)


@router.get("/", response_model=DocumentList)
async def list_docs(
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    search: str | None = Query(default=None),
    tags: str | None = Query(default=None, description="Comma-separated; any tag matches"),
    favorite: bool = Query(default=False),
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    items, total = await list_documents(
        db,
        user_id,
        offset,
        limit,
        search=(search or "").strip() or None,
        tags=normalize_tags(tags),
        favorite=favorite,
    )
    return DocumentList(items=items, total=total, offset=offset, limit=limit)


@router.get("/{doc_id}", response_model=Document)
async def get_doc(
    doc_id: str,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    doc = await get_document(db, user_id, doc_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Document not found")
    return doc


@router.patch("/{doc_id}", response_model=Document)
async def update_doc(
    doc_id: str,
    body: DocumentUpdate,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    """Update title, tags or the favorite flag; omitted fields are left alone."""
    doc = await update_document(db, user_id, doc_id, body)
    if not doc:
        raise HTTPException(status_code=404, detail="Document not found")
    return doc


@router.post("/{doc_id}/summary", response_model=Document)
async def summarize_doc(
    doc_id: str,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    doc = await get_document(db, user_id, doc_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Document not found")

    try:
        summary = await summarize(doc)
    except LLMUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except ContentGenerationError as e:
        logger.warning("Summary generation failed for document %s: %s", doc_id, e)
        raise HTTPException(status_code=502, detail=str(e)) from e

    return await update_document_summary(db, user_id, doc_id, summary)


@router.delete("/{doc_id}", status_code=204)
async def delete_doc(
    doc_id: str,
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    """Delete a document together with its flashcards, quizzes and attempts."""
    deleted = await delete_document(db, user_id, doc_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Document not found")
