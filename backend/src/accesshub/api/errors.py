"""Exception handlers turning every failure into the error envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from accesshub.api.envelope import failure
from accesshub.errors import AppError, AuthenticationError, FieldError, StorageError

logger = logging.getLogger(__name__)


def _location(loc: tuple) -> str | None:
    # Drop the "body"/"query"/"path" prefix FastAPI puts first
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts) or None


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if isinstance(exc, StorageError) and exc.status_code >= 500:
            logger.error(
                "Storage error on %s %s: %s",
                request.method,
                request.url.path,
                exc.cause or exc.message,
                exc_info=exc.cause or exc,
            )
        elif exc.status_code >= 500:
            logger.error("Error on %s %s: %s", request.method, request.url.path, exc.message)
        else:
            logger.info(
                "%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message
            )

        headers = None
        if isinstance(exc, AuthenticationError):
            headers = {"WWW-Authenticate": "Bearer"}
        return failure(exc.message, exc.status_code, exc.errors, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [FieldError(_location(tuple(e.get("loc", ()))), e.get("msg", "Invalid value")) for e in exc.errors()]
        return failure("Validation failed", 400, errors)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return failure(str(exc.detail), exc.status_code, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return failure("Internal server error", 500)
