"""Audience aggregation schemas."""

from pydantic import BaseModel, Field


class PersonaCount(BaseModel):
    """GET /available-personas item."""

    id: str
    count: int


class AudienceStatsRequest(BaseModel):
    """POST /audience-stats request. Emptiness is checked by the aggregator."""

    persona_ids: list[str] | None = None


class AudienceStats(BaseModel):
    """POST /audience-stats response."""

    total_customers: int
    avg_ltv: float
    engagement_rate: float = Field(description="Placeholder until event-based engagement exists")
