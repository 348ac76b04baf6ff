"""Global exception handlers producing the ``{ok: false, error}`` envelope.

Usage:
    from libs.common.error_handler import add_exception_handlers

    app = FastAPI()
    add_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.common.errors import DependencyError, DomainError
from libs.common.logging import get_logger
from libs.common.responses import fail
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = get_logger(__name__)

_HTTP_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "RATE_LIMIT_EXCEEDED",
}


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        message = err.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request"


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if isinstance(exc, DependencyError):
        logger.error(
            "Dependency failure: %s",
            exc.__cause__ or exc.message,
            exc_info=exc.__cause__ or exc,
        )
        # Never leak storage internals to the client.
        body = fail(exc.message, exc.code)
    else:
        logger.info("%s: %s", exc.code, exc.message)
        body = fail(exc.message, exc.code, exc.details)
    return JSONResponse(status_code=exc.status_code, content=body)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=fail(_describe_validation_errors(exc), "VALIDATION_ERROR"),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=fail(message, _HTTP_CODES.get(exc.status_code, "HTTP_ERROR")),
        headers=getattr(exc, "headers", None),
    )


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Unhandled database error", exc_info=exc)
    error = DependencyError()
    return JSONResponse(status_code=error.status_code, content=fail(error.message, error.code))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception",
        extra={"extra_fields": {"error": str(exc)}},
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content=fail("Server error", "INTERNAL_ERROR"))


def add_exception_handlers(app: FastAPI) -> None:
    """Register the envelope-producing handlers on ``app``."""
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
