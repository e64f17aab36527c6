"""Centralized exception handlers.

Learn: Services raise domain errors (authgate.errors); this module is the
one place that turns them into HTTP responses with a consistent body:

    {"detail": "Human-readable message", "code": "machine_readable_code"}

Credential failures always get the same generic 401 body, whatever the
internal reason was.
"""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from authgate.errors import (
    AuthGateError,
    ConflictError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
    VerificationError,
)

logger = structlog.get_logger()

UNAUTHORIZED_DETAIL = "Invalid or expired credential"
UNAVAILABLE_DETAIL = "Service temporarily unavailable, retry later"

ERROR_STATUS: dict[type[AuthGateError], int] = {
    VerificationError: status.HTTP_401_UNAUTHORIZED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _status_for(exc: AuthGateError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_domain_error(request: Request, exc: AuthGateError) -> JSONResponse:
    status_code = _status_for(exc)

    if isinstance(exc, VerificationError):
        return JSONResponse(
            status_code=status_code,
            content={"detail": UNAUTHORIZED_DETAIL, "code": exc.code},
            headers={"WWW-Authenticate": "Bearer"},
        )

    if isinstance(exc, StoreUnavailableError):
        logger.warning("request.store_unavailable", path=request.url.path)
        return JSONResponse(
            status_code=status_code,
            content={"detail": UNAVAILABLE_DETAIL, "code": exc.code},
            headers={"Retry-After": "1"},
        )

    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message or str(exc), "code": exc.code},
    )


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request body → 422 in the common error shape.

    Only field locations and messages are echoed. FastAPI's default body
    also carries the rejected `input`, which for auth routes is a password.
    """
    detail = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": detail, "code": ValidationError.code},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthGateError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
