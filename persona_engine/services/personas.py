"""Persona assignment orchestration: evaluate, write, audit, and right to object."""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine.config import settings
from persona_engine.engine.evaluator import check_profile, evaluate
from persona_engine.engine.snapshot import ConfigSnapshot
from persona_engine.errors import DependencyFailure
from persona_engine.schemas.assignment import ProfileInput
from persona_engine.services.audit import ASSIGNED, RIGHT_TO_OBJECT, SYSTEM_ACTOR, AuditLogger
from persona_engine.storage.assignments import delete_for_profile, upsert_assignments
from persona_engine.storage.configuration import load_snapshot

logger = logging.getLogger(__name__)

AUTO = "auto"
MANUAL = "manual"


async def apply_assignments(
    db: AsyncSession,
    profile_id: str,
    persona_ids: list[str],
    method: str,
    assigned_at: datetime,
) -> None:
    """Upsert all personas for the profile and commit them as one transaction.

    Raises:
        DependencyFailure: any datastore error; nothing from this call is kept.
    """
    try:
        await upsert_assignments(db, profile_id, persona_ids, method, assigned_at)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Assignment write rolled back for profile %s", profile_id)
        raise DependencyFailure("Failed to persist persona assignments") from exc


async def simulate(db: AsyncSession, profile: ProfileInput) -> tuple[list[str], ConfigSnapshot]:
    """Evaluate against the live configuration without writing anything."""
    attrs = profile.model_dump(mode="json")
    check_profile(attrs)
    snapshot = await load_snapshot(db)
    return evaluate(attrs, snapshot), snapshot


async def assign_personas(
    db: AsyncSession,
    audit: AuditLogger,
    profile_id: str,
    profile: ProfileInput,
) -> tuple[list[str], datetime]:
    """
    Evaluate the profile and persist the result. Validation happens before the
    configuration is even read, so a rejected profile leaves no trace.

    Returns:
        (assigned persona ids in rule order, assignment timestamp)
    """
    attrs = profile.model_dump(mode="json")
    personas, snapshot = await simulate(db, profile)
    assigned_at = datetime.now(timezone.utc)

    await apply_assignments(db, profile_id, personas, AUTO, assigned_at)
    logger.info("Assigned %s to profile %s", personas, profile_id)

    audit.submit(
        profile_id,
        ASSIGNED,
        {
            "personas": personas,
            "method": AUTO,
            "input": attrs,
            "config_fingerprint": snapshot.fingerprint,
        },
        SYSTEM_ACTOR,
    )
    return personas, assigned_at


async def assign_manually(
    db: AsyncSession,
    audit: AuditLogger,
    profile_id: str,
    persona_id: str,
    changed_by: str,
    reason: str | None = None,
) -> datetime:
    """Operator-driven assignment of a single persona."""
    assigned_at = datetime.now(timezone.utc)
    await apply_assignments(db, profile_id, [persona_id], MANUAL, assigned_at)
    logger.info("%s manually assigned %s to profile %s", changed_by, persona_id, profile_id)
    audit.submit(
        profile_id,
        ASSIGNED,
        {"personas": [persona_id], "method": MANUAL},
        changed_by,
        reason,
    )
    return assigned_at


async def remove_all(
    db: AsyncSession,
    audit: AuditLogger,
    profile_id: str,
    changed_by: str,
    reason: str | None = None,
) -> list[str]:
    """Right to object: purge every assignment of the profile. Configuration is untouched."""
    reason = reason or settings.default_objection_reason
    removed = await delete_for_profile(db, profile_id)
    await db.commit()
    logger.info("Right to object for profile %s removed %d assignments", profile_id, len(removed))
    audit.submit(
        profile_id,
        RIGHT_TO_OBJECT,
        {"removed_personas": removed, "removed_count": len(removed)},
        changed_by,
        reason,
    )
    return removed
