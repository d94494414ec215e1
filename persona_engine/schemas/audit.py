"""Audit trail schemas."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class AuditLogOut(BaseModel):
    """One audit trail row as returned to callers."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    profile_id: str | None
    action: str
    details: dict[str, Any]
    changed_by: str
    reason: str | None
    timestamp: datetime


@dataclass(frozen=True)
class AuditFilter:
    """AND-combined audit query filters; None means unfiltered."""

    profile_id: str | None = None
    action: str | None = None
    changed_by: str | None = None
    date_start: datetime | None = None
    date_end: datetime | None = None

    def applied(self) -> dict[str, str]:
        return {
            name: value.isoformat() if isinstance(value, datetime) else value
            for name, value in vars(self).items()
            if value is not None
        }
