"""
Exception handlers - translate failures into the standard error envelope.

Domain exceptions map to status codes by class. Request validation errors
become 400 with field details. Anything unexpected is logged server-side
and answered with a generic 500 that leaks no internals.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.models import ErrorResponse
from src.domain.exceptions import (
    AlreadyRegistered,
    DeliveryFailure,
    IdentityError,
    InvalidCredentials,
    InvalidOrExpiredCode,
    InvalidToken,
    UserNotFound,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[IdentityError], int] = {
    ValidationError: 400,
    AlreadyRegistered: 400,
    InvalidOrExpiredCode: 400,
    InvalidCredentials: 401,
    InvalidToken: 401,
    UserNotFound: 404,
    DeliveryFailure: 500,
}


def status_for(exc: IdentityError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return 500


def _envelope(status_code: int, message: str, errors: list[dict] | None = None) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def identity_error_handler(_request: Request, exc: IdentityError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("Identity operation failed: %s", type(exc).__name__, exc_info=exc)
    return _envelope(status_code, exc.message)


def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Convert FastAPI's validation errors to a 400 envelope with field details."""
    details = [
        {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in exc.errors()
    ]
    return _envelope(400, "Validation failed", details)


def http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = _envelope(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions. Never exposes internal details."""
    logger.exception("Unhandled exception on %s", request.url.path, exc_info=exc)
    return _envelope(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(IdentityError, identity_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)
