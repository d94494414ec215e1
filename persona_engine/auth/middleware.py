"""API key authentication dependency."""

import hashlib
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine.config import settings
from persona_engine.database import get_db
from persona_engine.models import ApiClient

API_KEY_HEADER = APIKeyHeader(name="Authorization", auto_error=False)


def hash_api_key(api_key: str) -> str:
    """Hash API key with salt for storage/lookup."""
    return hashlib.sha256(f"{settings.api_key_hash_salt}:{api_key}".encode()).hexdigest()


async def get_caller(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth_header: str | None = Depends(API_KEY_HEADER),
) -> ApiClient:
    """Resolve the calling client from ``Authorization: Bearer <api key>``."""
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
        )
    api_key = auth_header[7:].strip()
    if not api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")
    result = await db.execute(select(ApiClient).where(ApiClient.api_key_hash == hash_api_key(api_key)))
    client = result.scalar_one_or_none()
    if not client:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid API key")
    return client


# Type alias for dependency injection
CallerDep = Annotated[ApiClient, Depends(get_caller)]
