from fastapi import APIRouter

from studydeck.config import settings

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    return {"status": "ok", "llm_configured": bool(settings.llm_api_key)}
