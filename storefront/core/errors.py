"""
Application errors and their FastAPI handlers

Services raise StoreError subclasses; the handler registered in main
turns them into JSON responses with a consistent shape.
"""
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base error for business-rule failures"""

    status_code = 400

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(StoreError):
    status_code = 400


class ConflictError(StoreError):
    """Uniqueness violations (duplicate email, slug, code...)"""
    status_code = 400


class AuthenticationFailed(StoreError):
    status_code = 401


class PermissionDenied(StoreError):
    status_code = 403


class NotFoundError(StoreError):
    status_code = 404


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Render a StoreError as JSON"""
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__}: {exc.message} - URL: {request.url.path}")
    else:
        logger.info(f"{exc.__class__.__name__} ({exc.status_code}): {exc.message} - URL: {request.url.path}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "message": exc.message,
            "path": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Give HTTPException the same body shape as StoreError"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "message": exc.detail,
            "path": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Invalid request payloads are 400s with one entry per failing field"""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.info(f"Validation failed: {len(errors)} error(s) - URL: {request.url.path}")

    return JSONResponse(
        status_code=400,
        content={
            "status": "error",
            "message": "Validation failed",
            "errors": errors,
            "path": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)

    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "message": "Internal server error",
            "path": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def register_exception_handlers(app: FastAPI):
    """Attach the application error handlers"""
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
