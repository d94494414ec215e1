"""Assignment storage - upserts, per-profile reads, purge and aggregates."""

from datetime import datetime

from sqlalchemy import Text, cast, delete, distinct, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine.models import Assignment, Customer

DEFAULT_SCORE = 1.0


async def upsert_assignments(
    db: AsyncSession,
    profile_id: str,
    persona_ids: list[str],
    method: str,
    assigned_at: datetime,
) -> None:
    """
    Upsert one row per persona on (profile_id, persona_id). Score is only set
    on insert. Does not commit: the caller owns the transaction.
    """
    for persona_id in persona_ids:
        stmt = insert(Assignment).values(
            profile_id=profile_id,
            persona_id=persona_id,
            assigned_at=assigned_at,
            method=method,
            score=DEFAULT_SCORE,
        )
        await db.execute(
            stmt.on_conflict_do_update(
                index_elements=["profile_id", "persona_id"],
                set_={"assigned_at": assigned_at, "method": method},
            )
        )


async def list_for_profile(db: AsyncSession, profile_id: str) -> list[Assignment]:
    result = await db.execute(
        select(Assignment)
        .where(Assignment.profile_id == profile_id)
        .order_by(Assignment.assigned_at.desc(), Assignment.persona_id)
    )
    return list(result.scalars().all())


async def delete_for_profile(db: AsyncSession, profile_id: str) -> list[str]:
    """Delete every assignment of the profile. Returns the removed persona ids."""
    result = await db.execute(
        delete(Assignment).where(Assignment.profile_id == profile_id).returning(Assignment.persona_id)
    )
    return sorted(result.scalars().all())


async def count_assignments(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(Assignment))
    return int(result.scalar_one())


async def persona_counts(db: AsyncSession) -> list[tuple[str, int]]:
    """(persona_id, distinct profiles) ordered by count DESC, then persona_id."""
    profile_count = func.count(distinct(Assignment.profile_id)).label("profile_count")
    result = await db.execute(
        select(Assignment.persona_id, profile_count)
        .group_by(Assignment.persona_id)
        .order_by(profile_count.desc(), Assignment.persona_id)
    )
    return [(persona_id, int(count)) for persona_id, count in result.all()]


async def audience_totals(db: AsyncSession, persona_ids: list[str]) -> tuple[int, float]:
    """
    Distinct profiles holding any of the personas, and their average lifetime
    value from the CRM customer store. Profiles without a customer row or
    with a null value count as 0.
    """
    profiles = (
        select(distinct(Assignment.profile_id).label("profile_id"))
        .where(Assignment.persona_id.in_(persona_ids))
        .subquery()
    )
    result = await db.execute(
        select(
            func.count(profiles.c.profile_id),
            func.avg(func.coalesce(Customer.lifetime_value, 0)),
        )
        .select_from(profiles)
        .outerjoin(Customer, cast(Customer.id, Text) == profiles.c.profile_id)
    )
    total, avg_ltv = result.one()
    return int(total or 0), float(avg_ltv or 0)
