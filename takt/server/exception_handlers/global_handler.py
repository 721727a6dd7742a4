"""
Global Exception Handlers for FastAPI Application.

This module maps every failure to the ``{"success": false, "error": {...}}``
envelope:

- ``TaktError`` subclasses carry their own status and code.
- Request validation failures become 400 ``VALIDATION_ERROR`` with per-field messages.
- Anything else is logged with an error ID and request context and becomes
  a generic 500 ``INTERNAL_ERROR``.
"""

import traceback
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from takt.core.errors import TaktError
from takt.core.logging_config import get_logger
from takt.core.monitoring import log_error

logger = get_logger(__name__)


def error_response(status_code: int, error: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


async def takt_error_handler(request: Request, exc: TaktError) -> JSONResponse:
    """Render an application error raised by a route or dependency."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} in {request.method} {request.url.path}: {exc.message}")
    else:
        logger.debug(f"{exc.code} ({exc.status_code}) in {request.method} {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.to_dict())


def _field_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    fields: Dict[str, List[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        key = ".".join(loc) or "_"
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        fields.setdefault(key, []).append(message)
    return fields


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request body/query validation failures."""
    details = _field_errors(exc)
    logger.debug(f"Validation failed for {request.method} {request.url.path}: {details}")
    return error_response(400, {"code": "VALIDATION_ERROR", "message": "Invalid input", "details": details})


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to log detailed error information.

    This handler is called for any unhandled exception in the application.
    It logs the full error context and returns a generic error body with an
    error ID that clients can use to reference the error when reporting issues.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with a 500 status and the error envelope
    """
    # Generate unique error ID for tracking
    error_id = id(exc)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )
    log_error(type(exc).__name__, str(exc), {"error_id": error_id, "path": request.url.path})

    return error_response(
        500,
        {
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "details": {"errorId": error_id},
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    This function should be called during application initialization to set up
    all custom exception handlers.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(TaktError, takt_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
