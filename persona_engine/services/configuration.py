"""Audited configuration changes."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine.engine.evaluator import validate_condition
from persona_engine.engine.snapshot import coerce_parameter, infer_data_type, to_stored_text
from persona_engine.errors import ValidationError
from persona_engine.schemas.configuration import ListUpsert, MapUpsert, ParameterUpsert, RuleUpsert
from persona_engine.services.audit import (
    UPDATE_LIST,
    UPDATE_MAP,
    UPDATE_PARAM,
    UPDATE_RULE,
    AuditLogger,
)
from persona_engine.storage.configuration import upsert_list, upsert_map, upsert_parameter, upsert_rule

logger = logging.getLogger(__name__)


async def set_parameter(db: AsyncSession, audit: AuditLogger, body: ParameterUpsert, changed_by: str) -> None:
    data_type = body.type or infer_data_type(body.value)
    value = to_stored_text(body.value, data_type)
    try:
        coerce_parameter(value, data_type)
    except ValueError as exc:
        raise ValidationError(f"Value for {body.key} is not a valid {data_type}", field="value") from exc

    previous = await upsert_parameter(db, body.key, value, data_type)
    await db.commit()
    logger.info("%s set parameter %s=%s (%s)", changed_by, body.key, value, data_type)
    audit.submit(
        None,
        UPDATE_PARAM,
        {"key": body.key, "value": value, "data_type": data_type, "previous": previous},
        changed_by,
        body.reason,
    )


async def set_list(db: AsyncSession, audit: AuditLogger, body: ListUpsert, changed_by: str) -> None:
    previous = await upsert_list(db, body.key, body.values)
    await db.commit()
    logger.info("%s set list %s (%d values)", changed_by, body.key, len(body.values))
    audit.submit(
        None,
        UPDATE_LIST,
        {"key": body.key, "values": body.values, "previous": previous},
        changed_by,
        body.reason,
    )


async def set_map_entry(db: AsyncSession, audit: AuditLogger, body: MapUpsert, changed_by: str) -> None:
    previous = await upsert_map(db, body.map_key, body.lookup_key, body.value)
    await db.commit()
    logger.info("%s set map %s[%s]", changed_by, body.map_key, body.lookup_key)
    audit.submit(
        None,
        UPDATE_MAP,
        {
            "map_key": body.map_key,
            "lookup_key": body.lookup_key,
            "value": body.value,
            "previous": previous,
        },
        changed_by,
        body.reason,
    )


async def set_rule(db: AsyncSession, audit: AuditLogger, body: RuleUpsert, changed_by: str) -> None:
    """Store a rule after checking its condition tree.

    Raises:
        InvalidRuleError: the condition tree is malformed.
    """
    validate_condition(body.when)
    rule = {
        "rule_id": body.rule_id,
        "persona_id": body.persona_id,
        "name": body.name,
        "priority": body.priority,
        "when": body.when,
        "enabled": body.enabled,
    }
    previous = await upsert_rule(db, rule)
    await db.commit()
    logger.info("%s set rule %s -> %s", changed_by, body.rule_id, body.persona_id)
    audit.submit(None, UPDATE_RULE, {"rule": rule, "previous": previous}, changed_by, body.reason)
