"""
Error types and the terminal error handlers.

Route handlers raise; nothing below the handlers builds error responses.
Every error body has the same shape:

    {"success": false, "error": "<message>", "details": ...}
"""

import logging
from typing import Any, Optional

from bson.errors import InvalidId
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ============================================================
# REQUEST-LEVEL ERRORS
# ============================================================

class AppError(Exception):
    """Base error carrying an HTTP status code."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Server Error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, details: Any = None):
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Bad request"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authorized to access this route"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class AnswerValidationError(BadRequestError):
    """Submitted answers do not satisfy the form's fields."""

    message = "Invalid response"


# ============================================================
# STARTUP ERRORS
# ============================================================

class StartupError(Exception):
    """The service cannot start; raised before the socket is bound."""


class DatabaseConnectionError(StartupError):
    pass


class DocumentationError(StartupError):
    pass


# ============================================================
# HANDLERS
# ============================================================

def error_body(message: str, details: Any = None) -> dict:
    body = {"success": False, "error": message}
    if details is not None:
        body["details"] = jsonable_encoder(details)
    return body


def error_response(status_code: int, message: str, details: Any = None, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_body(message, details), headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.message, exc.details, headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    details = None if isinstance(exc.detail, str) else exc.detail
    return error_response(exc.status_code, detail, details, getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation failed", exc.errors())


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError) -> JSONResponse:
    return error_response(status.HTTP_400_BAD_REQUEST, "Duplicate field value entered")


async def invalid_id_handler(request: Request, exc: InvalidId) -> JSONResponse:
    return error_response(status.HTTP_404_NOT_FOUND, "Resource not found")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Error")


def register_exception_handlers(app: FastAPI) -> None:
    """Install the terminal error handlers. Registered after all routers."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(InvalidId, invalid_id_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
