"""Audience endpoints for persona pickers and campaign sizing."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine.auth.middleware import CallerDep
from persona_engine.database import get_db
from persona_engine.schemas.audience import AudienceStats, AudienceStatsRequest, PersonaCount
from persona_engine.services import audience as audience_service

router = APIRouter()


@router.get("/available-personas", response_model=list[PersonaCount])
async def available_personas(
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Every persona currently assigned, most popular first."""
    return await audience_service.list_personas(db)


@router.post("/audience-stats", response_model=AudienceStats)
async def audience_stats(
    body: AudienceStatsRequest,
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    return await audience_service.audience_stats(db, body.persona_ids)
