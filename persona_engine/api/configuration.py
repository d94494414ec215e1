"""Configuration admin endpoints - parameters, lists, maps, rules."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine.auth.middleware import CallerDep
from persona_engine.database import get_db
from persona_engine.engine.evaluator import InvalidRuleError
from persona_engine.schemas.configuration import (
    ConfigurationDump,
    ListUpsert,
    MapUpsert,
    ParameterUpsert,
    RuleUpsert,
)
from persona_engine.services import configuration as config_service
from persona_engine.services.audit import AuditLogger, get_audit_logger
from persona_engine.storage.configuration import dump_configuration

router = APIRouter()


@router.get("/configuration", response_model=ConfigurationDump)
async def get_configuration(
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Every parameter, list, map entry and rule."""
    return ConfigurationDump.model_validate(await dump_configuration(db), from_attributes=True)


@router.post("/parameters")
async def upsert_parameter(
    body: ParameterUpsert,
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
):
    await config_service.set_parameter(db, audit, body, caller.name)
    return {"success": True}


@router.post("/lists")
async def upsert_list(
    body: ListUpsert,
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
):
    await config_service.set_list(db, audit, body, caller.name)
    return {"success": True}


@router.post("/maps")
async def upsert_map(
    body: MapUpsert,
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
):
    await config_service.set_map_entry(db, audit, body, caller.name)
    return {"success": True}


@router.post("/rules")
async def upsert_rule(
    body: RuleUpsert,
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
):
    """Create or replace a persona rule. The condition tree is checked before storing."""
    try:
        await config_service.set_rule(db, audit, body, caller.name)
    except InvalidRuleError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return {"success": True}
