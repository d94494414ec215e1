"""Audience aggregation for marketing consumers."""

from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine.errors import ValidationError
from persona_engine.schemas.audience import AudienceStats, PersonaCount
from persona_engine.storage.assignments import audience_totals, persona_counts

# Stub until engagement is computed from interaction events; callers must not
# treat it as a measurement.
ENGAGEMENT_RATE_PLACEHOLDER = 0.0


async def list_personas(db: AsyncSession) -> list[PersonaCount]:
    return [PersonaCount(id=persona_id, count=count) for persona_id, count in await persona_counts(db)]


async def audience_stats(db: AsyncSession, persona_ids: list[str] | None) -> AudienceStats:
    """
    Raises:
        ValidationError: persona_ids missing or empty.
    """
    ids = sorted({p for p in persona_ids or [] if p})
    if not ids:
        raise ValidationError("persona_ids must be a non-empty array", field="persona_ids")
    total, avg_ltv = await audience_totals(db, ids)
    return AudienceStats(
        total_customers=total,
        avg_ltv=round(avg_ltv, 2),
        engagement_rate=ENGAGEMENT_RATE_PLACEHOLDER,
    )
