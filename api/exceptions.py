"""
Centralized response envelopes and exception handling for the API.

Routers return `success_response(...)` or `error_response(result.error)`.
Exceptions only reach these handlers at the outermost boundary; anything
unexpected becomes a generic 500.

Envelopes:
    {"success": true, "data": ...}
    {"success": false, "error": "...", "status": 403, "details": [...]}
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from models.errors import DEFAULT_STATUS, ErrorKind, ServiceError

logger = logging.getLogger("tup-matching")

_KIND_BY_STATUS = {status_code: kind for kind, status_code in DEFAULT_STATUS.items()}


# =============================================================================
# RESPONSE BUILDERS
# =============================================================================


def success_response(data: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Wrap data in the success envelope."""
    return JSONResponse(status_code=status_code, content={"success": True, "data": data})


def error_response(error: ServiceError) -> JSONResponse:
    """Render a ServiceError as the failure envelope with its status."""
    return JSONResponse(status_code=error.status, content=error.to_dict())


def _kind_for_status(status_code: int) -> ErrorKind:
    if status_code == 422:
        return ErrorKind.INVALID_PAYLOAD
    return _KIND_BY_STATUS.get(status_code, ErrorKind.INTERNAL)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPException (404 for unknown routes, 405, ...) in the envelope."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    error = ServiceError(_kind_for_status(exc.status_code), message, status=exc.status_code)
    response = error_response(error)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI request-model validation errors."""
    errors = [
        {
            "location": ".".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning(f"[VALIDATION ERROR] {request.method} {request.url.path}: {len(errors)} validation errors")

    return error_response(
        ServiceError(
            ErrorKind.INVALID_PAYLOAD,
            "Request validation failed",
            status=422,
            details=errors,
        )
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs the full traceback with whatever request context is known, but
    returns a generic error to the client to avoid leaking internal details.
    """
    request_id = getattr(request.state, "request_id", None)
    context = getattr(request.state, "auth_context", None)
    user_id = context.user_id if context else None
    experience_id = context.experience_id if context else None

    logger.error(
        f"[UNHANDLED ERROR] {type(exc).__name__}: {exc} "
        f"(request_id={request_id}, user_id={user_id}, experience_id={experience_id})",
        exc_info=True,
    )

    return error_response(ServiceError(ErrorKind.INTERNAL, "Internal server error"))


# =============================================================================
# SETUP FUNCTION
# =============================================================================


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI app.

    Call this during app initialization:
        from api.exceptions import setup_exception_handlers
        setup_exception_handlers(app)
    """
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("[EXCEPTIONS] Registered exception handlers")
