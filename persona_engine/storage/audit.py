"""Audit trail storage - insert and filtered reads. There is no update or delete."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine.models import AuditLogEntry
from persona_engine.schemas.audit import AuditFilter


async def insert_audit_entry(
    db: AsyncSession,
    profile_id: str | None,
    action: str,
    details: dict,
    changed_by: str,
    reason: str | None,
    timestamp: datetime,
) -> AuditLogEntry:
    entry = AuditLogEntry(
        profile_id=profile_id,
        action=action,
        details=details,
        changed_by=changed_by,
        reason=reason,
        timestamp=timestamp,
    )
    db.add(entry)
    await db.flush()
    return entry


async def query_audit(db: AsyncSession, filters: AuditFilter, limit: int) -> list[AuditLogEntry]:
    """Newest first, capped at ``limit``."""
    stmt = select(AuditLogEntry)
    if filters.profile_id:
        stmt = stmt.where(AuditLogEntry.profile_id == filters.profile_id)
    if filters.action:
        stmt = stmt.where(AuditLogEntry.action == filters.action)
    if filters.changed_by:
        stmt = stmt.where(AuditLogEntry.changed_by == filters.changed_by)
    if filters.date_start:
        stmt = stmt.where(AuditLogEntry.timestamp >= filters.date_start)
    if filters.date_end:
        stmt = stmt.where(AuditLogEntry.timestamp <= filters.date_end)
    stmt = stmt.order_by(AuditLogEntry.timestamp.desc(), AuditLogEntry.id.desc()).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())
