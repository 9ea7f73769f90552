"""
Shared API Middleware
======================

Request tracing, request logging and JSON error responses.

Every response carries an ``X-Correlation-ID`` header, and every error body
carries the same id so a client report can be matched to the service log.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from warning_tracker.core import ApplicationException
from warning_tracker.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Polled by load balancers; logged at DEBUG only
QUIET_PATHS = frozenset({"/health"})


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", "unknown")


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Takes the correlation id from the request header or generates one."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request with status and response time."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        context = {
            "correlation_id": _correlation_id(request),
            "method": request.method,
            "path": request.url.path,
        }

        try:
            response = await call_next(request)
        except Exception as e:
            context["response_time_ms"] = int((time.perf_counter() - start_time) * 1000)
            logger.error("Request failed", extra={**context, "error": str(e)})
            raise

        context["status_code"] = response.status_code
        context["response_time_ms"] = int((time.perf_counter() - start_time) * 1000)
        if request.url.path in QUIET_PATHS:
            logger.debug("Request completed", extra=context)
        else:
            logger.info("Request completed", extra=context)
        return response


def _error_response(request: Request, status_code: int, content: dict) -> JSONResponse:
    content.update({
        "correlation_id": _correlation_id(request),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })
    return JSONResponse(status_code=status_code, content=content)


async def application_exception_handler(request: Request, exc: ApplicationException) -> JSONResponse:
    """
    Turn an application exception that escaped a route into a JSON error.

    Routes map not-found and validation errors themselves; this catches the
    rest, such as a data file that cannot be written.
    """
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        "Application error",
        extra={
            "correlation_id": _correlation_id(request),
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "error_message": exc.message,
        }
    )
    return _error_response(request, exc.http_status, {"detail": exc.message, **exc.to_dict()})


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler; hides internals outside development."""
    logger.error(
        "Unhandled exception",
        extra={
            "correlation_id": _correlation_id(request),
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error_message": str(exc)
        }
    )

    settings = getattr(request.app.state, "settings", None)
    is_dev = getattr(settings, "environment", None) == "development"

    return _error_response(request, 500, {
        "detail": "Internal server error",
        "debug_info": str(exc) if is_dev else None
    })
