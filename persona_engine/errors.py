"""Engine exceptions and their HTTP mapping.

Services raise these; the handlers registered by ``register_exception_handlers``
turn them into ``{"success": false, "error": ...}`` bodies. Nothing internal
(tracebacks, SQL, identifiers) is ever put in a response.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class PersonaEngineError(Exception):
    """Base exception for persona engine errors.

    Attributes:
        message: Human-readable error description, safe to return to callers.
        error_code: Machine-readable code; defaults to the class name.
        details: Extra context for logs and tests (not serialized to callers).
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(PersonaEngineError):
    """Client-caused failure: missing fields, consent not given, empty input."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, "VALIDATION_ERROR", {"field": field} if field else {})


class DependencyFailure(PersonaEngineError):
    """The datastore was unreachable or a query failed."""

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message, "DEPENDENCY_FAILURE")


def error_body(message: str) -> dict[str, Any]:
    return {"success": False, "error": message}


def _engine_error_handler(request: Request, exc: PersonaEngineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are client errors; report the first offending field."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(message))


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Datastore failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register engine, request-validation, HTTP and datastore handlers on the app."""
    app.add_exception_handler(PersonaEngineError, _engine_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)
