"""Persona engine FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from persona_engine import __version__
from persona_engine.api.audience import router as audience_router
from persona_engine.api.audit import router as audit_router
from persona_engine.api.configuration import router as configuration_router
from persona_engine.api.health import router as health_router
from persona_engine.api.personas import router as personas_router
from persona_engine.config import settings
from persona_engine.database import engine
from persona_engine.errors import register_exception_handlers
from persona_engine.services.audit import audit_logger

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/v1/persona"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Persona engine %s starting", __version__)
    yield
    await audit_logger.drain()
    logger.info("Audit writes drained: %s", audit_logger.stats())
    await engine.dispose()


app = FastAPI(
    title="Persona Engine",
    description="Assigns customer profiles to personas from configurable rules, with an audit trail",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health_router, prefix=API_PREFIX, tags=["Health"])
app.include_router(personas_router, prefix=API_PREFIX, tags=["Profiles"])
app.include_router(configuration_router, prefix=API_PREFIX, tags=["Configuration"])
app.include_router(audit_router, prefix=API_PREFIX, tags=["Audit"])
app.include_router(audience_router, prefix=API_PREFIX, tags=["Audience"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"service": "persona-engine", "version": __version__, "docs": "/docs"}
