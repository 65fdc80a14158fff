"""
Error taxonomy and global exception handlers.

Every handler produces the same body shape::

    {"success": false, "error": "<kind>", "detail": "<message>"}

so clients never have to guess which fields an error carries, and stack
traces never reach them.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)


# ── Taxonomy ────────────────────────────────────────────────────────
class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    kind: str = "internal_error"

    def __init__(self, detail: str, **extra: Any) -> None:
        super().__init__(detail)
        self.detail = detail
        self.extra = extra

    def to_content(self) -> dict[str, Any]:
        return {"success": False, "error": self.kind, "detail": self.detail, **self.extra}


class ValidationError(AppError):
    status_code = 400
    kind = "validation_error"


class NotFoundError(AppError):
    status_code = 404
    kind = "not_found"


class ConflictError(AppError):
    status_code = 409
    kind = "conflict"


class AuthError(AppError):
    """Unauthenticated: bad credentials, missing token, dead session."""

    status_code = 401
    kind = "unauthenticated"


class ForbiddenError(AuthError):
    """Authenticated identity (or token) is not acceptable."""

    status_code = 403
    kind = "forbidden"


class AccountLockedError(ForbiddenError):
    kind = "account_locked"

    def __init__(self, locked_until: datetime) -> None:
        super().__init__(
            f"Account is locked. Try again after {locked_until.isoformat()}",
            lockedUntil=locked_until.isoformat(),
        )
        self.locked_until = locked_until


class InternalError(AppError):
    status_code = 500
    kind = "internal_error"

    def to_content(self) -> dict[str, Any]:
        content = super().to_content()
        if not settings.is_development:
            content["detail"] = "Internal server error"
        return content


# ── Handlers ────────────────────────────────────────────────────────
def _error(status_code: int, kind: str, detail: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": kind, "detail": detail},
    )


async def _app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Internal error: %s", exc.detail, exc_info=exc.__cause__ or exc)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_content(), headers=headers)


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": "http_error", "detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Missing or malformed input is a 400 in this API, not FastAPI's 422.
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    detail = f"{field}: {message}" if field else message
    return _error(400, ValidationError.kind, detail)


async def _rate_limit_handler(_request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return _error(429, "rate_limited", f"Rate limit exceeded: {exc.detail}")


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return _error(409, ConflictError.kind, "Database constraint violation")


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    detail = str(exc) if settings.is_development else "Internal database error"
    return _error(500, InternalError.kind, detail)


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    detail = str(exc) if settings.is_development else "Internal server error"
    return _error(500, InternalError.kind, detail)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(AppError, _app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
