from fastapi import Header

from studydeck.config import settings


async def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Owner that scopes every read and write. Not an authentication check."""
    return x_user_id or settings.default_user_id
