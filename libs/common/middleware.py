"""Request tracing middleware.

Every request gets an id (taken from X-Request-ID or generated) that is bound
to the logging context and echoed back on the response, together with the
time spent serving it.
"""
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)
from starlette.middleware.base import BaseHTTPMiddleware

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
DURATION_HEADER = "X-Response-Time-Ms"

# Polled by load balancers; logging them drowns everything else.
_QUIET_PATHS = {"/health"}


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get(REQUEST_ID_HEADER),
            path=request.url.path,
            method=request.method,
        )
        quiet = request.url.path in _QUIET_PATHS
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled error while serving request",
                extra={"extra_fields": {"duration_ms": _elapsed_ms(started)}},
            )
            raise
        else:
            duration_ms = _elapsed_ms(started)
            if not quiet:
                fields = {
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                    "school": request.query_params.get("school"),
                }
                if response.status_code >= 500:
                    logger.error("Request served", extra={"extra_fields": fields})
                elif response.status_code >= 400:
                    logger.warning("Request served", extra={"extra_fields": fields})
                else:
                    logger.info("Request served", extra={"extra_fields": fields})

            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers[DURATION_HEADER] = str(duration_ms)
            return response
        finally:
            clear_request_context()


def add_observability_middleware(app: FastAPI) -> None:
    """Configure logging and install the request tracing middleware on ``app``."""
    configure_logging()
    app.add_middleware(RequestContextMiddleware)
