"""Application error types and their HTTP rendering.

Stores and services raise these; the handlers registered by
`register_exception_handlers` turn each one into a fixed status code and a
JSON body, so route functions never build error responses themselves.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from crop_api.core.config import Settings

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong"


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateIdentity(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(AppError):
    """Raised for missing rows and for rows owned by someone else."""

    status_code = status.HTTP_404_NOT_FOUND


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason


class TokenError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    reason = "invalid"


class TokenExpired(TokenError):
    reason = "expired"


class TokenInvalid(TokenError):
    reason = "invalid"


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def _fail(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "fail", "message": message, **extra})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    message = str(first.get("msg", "Invalid request."))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    if location and first.get("type") in {"missing", "string_type", "int_parsing", "float_parsing", "list_type"}:
        return f"{'.'.join(location)}: {message}"
    return message


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(Unauthorized)
    async def unauthorized_handler(request: Request, exc: Unauthorized) -> JSONResponse:
        return _fail(exc.status_code, exc.message, reason=exc.reason)

    @app.exception_handler(InternalError)
    async def internal_error_handler(request: Request, exc: InternalError) -> JSONResponse:
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.message)
        message = exc.message if settings.is_development else GENERIC_ERROR_MESSAGE
        return JSONResponse(status_code=exc.status_code, content={"status": "error", "message": message})

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return await internal_error_handler(request, InternalError(f"Database error: {type(exc).__name__}"))

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return _fail(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _fail(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        content = {"status": "error", "message": GENERIC_ERROR_MESSAGE}
        if settings.is_development:
            content["detail"] = f"{type(exc).__name__}: {exc}"
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)
