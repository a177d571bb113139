"""
Application errors and the centralized error responder.

Every handler raises one of the ``AppError`` subclasses below; the
exception handlers registered by ``register_exception_handlers`` turn them
into the uniform JSON envelope ``{status, message, errors?}``.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from hackreg.core.config import get_settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base error carrying an HTTP status and optional field-level detail."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        errors: list[dict[str, Any]] | None = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors
        super().__init__(self.message)

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"status": self.status, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(AppError):
    """Shape, format or uniqueness violation."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    """Missing, malformed, expired or forged credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(AppError):
    """Valid credentials with the wrong role for the resource."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class CapacityError(AppError):
    """Registration closed because the team limit was reached."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Registration is closed. Maximum number of teams reached."):
        super().__init__(message)


class ConflictError(AppError):
    """A unique constraint rejected a write that raced a concurrent request."""

    status_code = status.HTTP_409_CONFLICT


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# ============== Helpers ==============

_CONSTRAINT_MESSAGES = {
    "registration_number": "Registration number already assigned, please retry the request",
    "team_members.email": "A member email is already registered to another team",
    "uq_team_members_email": "A member email is already registered to another team",
    "team_members.usn": "A member USN is already registered to another team",
    "uq_team_members_usn": "A member USN is already registered to another team",
    "users.email": "User with this email already exists",
    "ix_users_email": "User with this email already exists",
}


def conflict_from_integrity_error(exc: IntegrityError) -> ConflictError:
    """Translate a database unique-constraint violation into a ConflictError."""
    detail = str(exc.orig) if exc.orig is not None else str(exc)
    for marker, message in _CONSTRAINT_MESSAGES.items():
        if marker in detail:
            return ConflictError(message)
    return ConflictError("Duplicate value rejected by the database, please retry")


def _to_camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


def _format_location(loc: tuple[Any, ...]) -> str:
    # Drop the leading "body"/"query"/"path" segment
    parts = [str(part) for part in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(_to_camel(part) for part in parts)


# ============== Handlers ==============


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Map pydantic request validation failures onto the 400 envelope."""
    errors = []
    for error in exc.errors():
        entry = {
            "field": _format_location(tuple(error.get("loc", ()))),
            "message": error.get("msg", "Invalid value"),
        }
        if "input" in error and not isinstance(error["input"], (dict, list)):
            entry["value"] = error["input"]
        errors.append(entry)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ValidationError("Invalid input data", errors=errors).to_dict(),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Route {request.url.path} not found"
    else:
        message = str(exc.detail)
    error = AppError(message, status_code=exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=error.to_dict(),
        headers=getattr(exc, "headers", None),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    conflict = conflict_from_integrity_error(exc)
    logger.warning(f"Integrity error on {request.url.path}: {conflict.message}")
    return JSONResponse(status_code=conflict.status_code, content=conflict.to_dict())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=exc)
    settings = get_settings()
    message = str(exc) if settings.debug else "Something went wrong!"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=InternalError(message).to_dict(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Route every error kind through the same JSON envelope."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
