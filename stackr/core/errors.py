"""
Error taxonomy for the challenge engine and its HTTP mapping.

Every error reaching the client has the shape
{"error": {"code", "message", "request_id"}, "detail": message}
and carries the x-request-id header.
"""

import builtins
import logging
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.requests import Request

from stackr.core.logging import get_logger, get_request_id


class AppError(Exception):
    code = "app_error"
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.request_id = request_id


class ValidationError(AppError, ValueError):
    code = "validation_error"
    status_code = 400


class NotFoundError(AppError, ValueError):
    code = "not_found"
    status_code = 404


class PermissionError(AppError, builtins.PermissionError):
    code = "forbidden"
    status_code = 403


# Challenge engine errors --------------------------------------------

class InvalidTemplateError(ValidationError):
    """Unknown challenge type or difficulty, or no templates for a type."""
    code = "invalid_template"


class InvalidDurationError(ValidationError):
    code = "invalid_duration"


class InvalidContributionError(ValidationError):
    """Non-positive amount, early date, or a contribution to an abandoned challenge."""
    code = "invalid_contribution"


class InvalidTransitionError(AppError):
    """A lifecycle transition out of a terminal state."""
    code = "invalid_transition"
    status_code = 409


class InconsistentStateError(AppError):
    """A challenge value violates a structural invariant."""
    code = "inconsistent_state"
    status_code = 500


# HTTP mapping -------------------------------------------------------

def _request_id_for(request: Request) -> str:
    return getattr(request.state, "request_id", None) or get_request_id() or str(uuid4())


def _respond(
    rid: str,
    status_code: int,
    code: str,
    message: str,
    *,
    event: str,
    exc_info: bool = False,
) -> JSONResponse:
    level = logging.ERROR if status_code >= 500 else logging.WARNING
    get_logger().log(
        level,
        event,
        exc_info=exc_info,
        extra={"request_id": rid, "error_code": code, "status": status_code},
    )
    response = JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message, "request_id": rid}, "detail": message},
    )
    response.headers["x-request-id"] = rid
    return response


async def app_error_handler(request: Request, exc: AppError):
    rid = exc.request_id or _request_id_for(request)
    return _respond(rid, exc.status_code, exc.code, exc.message, event="app.error")


async def http_error_handler(request: Request, exc: HTTPException):
    code = "not_found" if exc.status_code == 404 else "http_error"
    message = str(exc.detail) if exc.detail else "HTTP error"
    return _respond(_request_id_for(request), exc.status_code, code, message, event="http.error")


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report the first invalid field as `loc: msg` with a 400."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = f"{location}: {first.get('msg', 'invalid value')}" if location else "Invalid request"
    return _respond(_request_id_for(request), 400, "validation_error", message, event="request.invalid")


async def unhandled_exception_handler(request: Request, exc: Exception):
    return _respond(
        _request_id_for(request),
        500,
        "internal_error",
        "Unexpected error",
        event="unhandled.exception",
        exc_info=True,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
