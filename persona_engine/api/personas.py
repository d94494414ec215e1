"""Profile endpoints - assign, simulate, inspect, manual assign, right to object."""

from typing import Annotated

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine.auth.middleware import CallerDep
from persona_engine.config import settings
from persona_engine.database import get_db
from persona_engine.schemas.assignment import (
    AssignmentOut,
    AssignPersonasRequest,
    AssignPersonasResponse,
    ManualAssignRequest,
    ObjectionRequest,
    SimulationResponse,
)
from persona_engine.schemas.audit import AuditFilter, AuditLogOut
from persona_engine.services import personas as persona_service
from persona_engine.services.audit import AuditLogger, get_audit_logger
from persona_engine.storage.assignments import list_for_profile
from persona_engine.storage.audit import query_audit

router = APIRouter()


@router.post("/profiles/{profile_id}/assign-personas", response_model=AssignPersonasResponse)
async def assign_personas(
    profile_id: str,
    body: AssignPersonasRequest,
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
):
    """
    Evaluate the profile against the current configuration and persist every
    matching persona. Requires consent and nationality, age and income.
    """
    personas, assigned_at = await persona_service.assign_personas(
        db, audit, profile_id, body.to_profile()
    )
    return AssignPersonasResponse(
        profile_id=profile_id, assigned_personas=personas, timestamp=assigned_at
    )


@router.post("/simulate", response_model=SimulationResponse)
async def simulate(
    body: AssignPersonasRequest,
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Dry run: which personas would this profile get? Nothing is written or audited."""
    personas, snapshot = await persona_service.simulate(db, body.to_profile())
    return SimulationResponse(assigned_personas=personas, config_fingerprint=snapshot.fingerprint)


@router.get("/profiles/{profile_id}")
async def get_profile(
    profile_id: str,
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Current assignments and the most recent audit entries for one profile."""
    assignments = await list_for_profile(db, profile_id)
    logs = await query_audit(db, AuditFilter(profile_id=profile_id), settings.audit_query_limit)
    return {
        "profileId": profile_id,
        "personas": [AssignmentOut.model_validate(a).model_dump(mode="json") for a in assignments],
        "logs": [AuditLogOut.model_validate(e).model_dump(mode="json") for e in logs],
    }


@router.post("/profiles/{profile_id}/personas")
async def assign_persona_manually(
    profile_id: str,
    body: ManualAssignRequest,
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
):
    """Attach one persona by hand (method=manual)."""
    await persona_service.assign_manually(
        db, audit, profile_id, body.persona_id, caller.name, body.reason
    )
    return {"success": True, "profileId": profile_id, "personaId": body.persona_id}


@router.delete("/profiles/{profile_id}/personas")
async def right_to_object(
    profile_id: str,
    caller: CallerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
    body: Annotated[ObjectionRequest | None, Body()] = None,
):
    """Remove every persona assignment of the profile. Irreversible."""
    removed = await persona_service.remove_all(
        db, audit, profile_id, caller.name, body.reason if body else None
    )
    return {
        "success": True,
        "message": f"Removed {len(removed)} persona assignment(s) for profile {profile_id}",
    }
