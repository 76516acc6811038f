import aiosqlite
from fastapi import APIRouter, Depends, Query

from studydeck.db.progress import get_analytics, get_dashboard, get_weekly_goals
from studydeck.db.sqlite import get_db
from studydeck.dependencies import get_user_id
from studydeck.models.progress import Analytics, Dashboard, WeeklyGoals

router = APIRouter()


@router.get("/dashboard", response_model=Dashboard)
async def dashboard(
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Dashboard:
    return await get_dashboard(db, user_id)


@router.get("/analytics", response_model=Analytics)
async def analytics(
    period: int = Query(default=30, ge=1, le=365, description="Window in days"),
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> Analytics:
    return await get_analytics(db, user_id, period_days=period)


@router.get("/goals", response_model=WeeklyGoals)
async def goals(
    user_id: str = Depends(get_user_id),
    db: aiosqlite.Connection = Depends(get_db),
) -> WeeklyGoals:
    return await get_weekly_goals(db, user_id)
