"""Audit trail endpoints."""

import csv
import io
import json
from datetime import date, datetime, time, timezone
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine.auth.middleware import CallerDep
from persona_engine.config import settings
from persona_engine.database import get_db
from persona_engine.errors import ValidationError
from persona_engine.schemas.audit import AuditFilter, AuditLogOut
from persona_engine.storage.audit import query_audit

router = APIRouter()

CSV_COLUMNS = ["timestamp", "action", "profile_id", "changed_by", "reason", "details"]


def _parse_bound(value: str | None, field: str, end_of_day: bool) -> datetime | None:
    """Parse an ISO date or datetime bound; naive values are UTC.

    A bare date covers the whole day, so an end bound widens to 23:59:59.999999.
    """
    if not value:
        return None
    try:
        if len(value) == 10:
            day = date.fromisoformat(value)
            return datetime.combine(day, time.max if end_of_day else time.min, tzinfo=timezone.utc)
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"{field}: invalid date or datetime", field=field) from exc
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def audit_filter(
    profile_id: Annotated[str | None, Query(alias="profileId")] = None,
    action: Annotated[str | None, Query()] = None,
    changed_by: Annotated[str | None, Query(alias="changedBy")] = None,
    date_start: Annotated[str | None, Query(alias="dateStart")] = None,
    date_end: Annotated[str | None, Query(alias="dateEnd")] = None,
) -> AuditFilter:
    return AuditFilter(
        profile_id=profile_id,
        action=action,
        changed_by=changed_by,
        date_start=_parse_bound(date_start, "dateStart", end_of_day=False),
        date_end=_parse_bound(date_end, "dateEnd", end_of_day=True),
    )


def render_csv(logs: list[AuditLogOut]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_COLUMNS)
    for log in logs:
        writer.writerow(
            [
                log.timestamp.isoformat(),
                log.action,
                log.profile_id or "",
                log.changed_by,
                log.reason or "",
                json.dumps(log.details, sort_keys=True),
            ]
        )
    return buffer.getvalue()


@router.get("/audit-logs", response_model=list[AuditLogOut])
async def list_audit_logs(
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
    filters: Annotated[AuditFilter, Depends(audit_filter)],
):
    """Newest first, at most 100 entries; all filters optional and AND-combined."""
    return await query_audit(db, filters, settings.audit_query_limit)


@router.get("/audit-logs/export")
async def export_audit_logs(
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
    filters: Annotated[AuditFilter, Depends(audit_filter)],
    format: Literal["json", "csv"] = "json",
):
    """Download the filtered trail as a JSON document or CSV file."""
    logs = [
        AuditLogOut.model_validate(e)
        for e in await query_audit(db, filters, settings.audit_query_limit)
    ]
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    filename = f"persona_audit_logs_{stamp}.{format}"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}

    if format == "csv":
        return Response(content=render_csv(logs), media_type="text/csv", headers=headers)

    document = {
        "exported_at": datetime.now(timezone.utc).isoformat(),
        "total_records": len(logs),
        "filters_applied": filters.applied(),
        "logs": [log.model_dump(mode="json") for log in logs],
    }
    return Response(content=json.dumps(document), media_type="application/json", headers=headers)
