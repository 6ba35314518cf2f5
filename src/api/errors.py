"""Exception handlers mapping errors to the JSON error envelope.

4xx responses carry `{"status": "fail", "message": ...}`, 5xx responses
`{"status": "error", "message": ...}`.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from domain.model.errors import AuthenticationError, DomainError
from utils import config

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went very wrong!"


def error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    body = {
        "status": "fail" if status_code < 500 else "error",
        "message": message,
    }
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}

    if exc.status_code >= 500:
        logger.error("Domain error", extra={"path": request.url.path, "error": str(exc)})
    else:
        logger.info(
            "Request rejected",
            extra={"path": request.url.path, "status": exc.status_code, "error": str(exc)},
        )
    return error_response(exc.status_code, str(exc), headers)


def _describe(error: dict) -> str:
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location)
    return f"{field}: {error.get('msg')}" if field else str(error.get("msg"))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [_describe(error) for error in exc.errors()]
    return error_response(status.HTTP_400_BAD_REQUEST, f"Invalid input data. {'. '.join(messages)}")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def database_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    logger.error("Database error", extra={"path": request.url.path, "error": str(exc)})
    return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "Database unavailable")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"path": request.url.path})
    message = GENERIC_ERROR_MESSAGE
    if config.is_development():
        message = f"{GENERIC_ERROR_MESSAGE} {type(exc).__name__}: {exc}"
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(PyMongoError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
