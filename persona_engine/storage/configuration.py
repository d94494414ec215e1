"""Configuration store - parameters, lists, maps and rules keyed by natural key."""

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine.engine.snapshot import ConfigSnapshot, coerce_parameter
from persona_engine.models import ConfigList, ConfigMap, Parameter, PersonaRule


def rule_to_dict(rule: PersonaRule) -> dict:
    """Stored rule row -> the dict shape the evaluator interprets."""
    return {
        "rule_id": rule.rule_id,
        "persona_id": rule.persona_id,
        "name": rule.name,
        "priority": rule.priority,
        "when": rule.condition,
        "enabled": rule.enabled,
    }


async def get_parameter(db: AsyncSession, key: str):
    """Typed parameter value, or None when absent."""
    row = await db.get(Parameter, key)
    if row is None:
        return None
    return coerce_parameter(row.value, row.data_type)


async def get_list(db: AsyncSession, key: str) -> list[str]:
    row = await db.get(ConfigList, key)
    return list(row.values) if row else []


async def get_map(db: AsyncSession, map_key: str, lookup_key: str) -> str | None:
    row = await db.get(ConfigMap, (map_key, lookup_key))
    return row.value if row else None


async def upsert_parameter(db: AsyncSession, key: str, value: str, data_type: str) -> dict | None:
    """Insert or replace by key. Returns the previous {value, data_type}, if any."""
    previous = await db.get(Parameter, key)
    before = {"value": previous.value, "data_type": previous.data_type} if previous else None
    stmt = insert(Parameter).values(key=key, value=value, data_type=data_type, last_updated=func.now())
    await db.execute(
        stmt.on_conflict_do_update(
            index_elements=["key"],
            set_={"value": value, "data_type": data_type, "last_updated": func.now()},
        )
    )
    return before


async def upsert_list(db: AsyncSession, key: str, values: list[str]) -> list[str] | None:
    """Insert or replace by key. Returns the previous values, if any."""
    previous = await db.get(ConfigList, key)
    before = list(previous.values) if previous else None
    stmt = insert(ConfigList).values(key=key, values=values, last_updated=func.now())
    await db.execute(
        stmt.on_conflict_do_update(
            index_elements=["key"],
            set_={"values": values, "last_updated": func.now()},
        )
    )
    return before


async def upsert_map(db: AsyncSession, map_key: str, lookup_key: str, value: str) -> str | None:
    """Insert or replace by (map_key, lookup_key). Returns the previous value, if any."""
    previous = await db.get(ConfigMap, (map_key, lookup_key))
    before = previous.value if previous else None
    stmt = insert(ConfigMap).values(
        map_key=map_key, lookup_key=lookup_key, value=value, last_updated=func.now()
    )
    await db.execute(
        stmt.on_conflict_do_update(
            index_elements=["map_key", "lookup_key"],
            set_={"value": value, "last_updated": func.now()},
        )
    )
    return before


async def upsert_rule(db: AsyncSession, rule: dict) -> dict | None:
    """Insert or replace by rule_id. ``rule`` uses the evaluator dict shape."""
    previous = await db.get(PersonaRule, rule["rule_id"])
    before = rule_to_dict(previous) if previous else None
    values = {
        "persona_id": rule["persona_id"],
        "name": rule["name"],
        "priority": rule.get("priority", 0),
        "condition": rule["when"],
        "enabled": rule.get("enabled", True),
        "last_updated": func.now(),
    }
    stmt = insert(PersonaRule).values(rule_id=rule["rule_id"], **values)
    await db.execute(stmt.on_conflict_do_update(index_elements=["rule_id"], set_=values))
    return before


async def load_snapshot(db: AsyncSession) -> ConfigSnapshot:
    """Read the whole configuration once; the evaluation never goes back to the store."""
    parameters = (await db.execute(select(Parameter))).scalars().all()
    lists = (await db.execute(select(ConfigList))).scalars().all()
    maps = (await db.execute(select(ConfigMap))).scalars().all()
    rules = (await db.execute(select(PersonaRule))).scalars().all()
    return ConfigSnapshot.build(
        parameters=[(p.key, p.value, p.data_type) for p in parameters],
        lists=[(lst.key, lst.values or []) for lst in lists],
        maps=[(m.map_key, m.lookup_key, m.value) for m in maps],
        rules=[rule_to_dict(r) for r in rules],
    )


async def dump_configuration(db: AsyncSession) -> dict[str, list]:
    """All configuration rows, ordered by key, for the admin screen."""
    return {
        "parameters": (await db.execute(select(Parameter).order_by(Parameter.key))).scalars().all(),
        "lists": (await db.execute(select(ConfigList).order_by(ConfigList.key))).scalars().all(),
        "maps": (
            await db.execute(select(ConfigMap).order_by(ConfigMap.map_key, ConfigMap.lookup_key))
        ).scalars().all(),
        "rules": (
            await db.execute(select(PersonaRule).order_by(PersonaRule.priority.desc(), PersonaRule.rule_id))
        ).scalars().all(),
    }
