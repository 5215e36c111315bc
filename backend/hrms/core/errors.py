from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from hrms.core.logging import get_logger

logger = get_logger(__name__)


class HRMSError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str, details: list[Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(HRMSError):
    """Malformed input or a violated business precondition."""

    status_code = 400


class AuthorizationError(HRMSError):
    status_code = 403


class UnauthorizedError(AuthorizationError):
    """No identity attached to the request."""

    status_code = 401


class ForbiddenError(AuthorizationError):
    status_code = 403


class NotFoundError(HRMSError):
    status_code = 404


class ConflictError(HRMSError):
    """Request collides with existing state (duplicate punch, overlapping leave, ...)."""

    status_code = 409


class TransientInfraError(HRMSError):
    """Storage failure that may succeed on retry."""

    status_code = 500


def error_body(message: str, details: list[Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"error": message}
    if details:
        body["details"] = jsonable_encoder(details)
    return body


async def hrms_error_handler(request: Request, exc: HRMSError) -> JSONResponse:
    logger.info(
        "request_rejected",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=error_body("Invalid input", details))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HRMSError, hrms_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
