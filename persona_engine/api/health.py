"""Health and metrics endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from persona_engine import __version__
from persona_engine.database import get_db
from persona_engine.services.audit import AuditLogger, get_audit_logger
from persona_engine.services.monitoring import DEGRADED, HealthMonitor, health_monitor

logger = logging.getLogger(__name__)

router = APIRouter()


def get_health_monitor() -> HealthMonitor:
    return health_monitor


@router.get("/health")
async def health(
    db: Annotated[AsyncSession, Depends(get_db)],
    monitor: Annotated[HealthMonitor, Depends(get_health_monitor)],
):
    """Liveness/capacity probe. No authentication."""
    try:
        return await monitor.check(db)
    except (SQLAlchemyError, OSError):
        logger.exception("Health check failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"uptime": monitor.uptime(), "status": DEGRADED, "error": "Datastore unavailable"},
        )


@router.get("/metrics")
async def metrics(audit: Annotated[AuditLogger, Depends(get_audit_logger)]):
    """Basic metrics endpoint for observability."""
    return {"service": "persona-engine", "version": __version__, "audit": audit.stats()}
