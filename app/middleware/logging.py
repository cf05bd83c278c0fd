"""Request logging with a per-request ID bound into structlog's context."""
import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Load balancer probes; only logged when they fail
QUIET_PATHS = frozenset({"/health"})


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Bind ``request_id``, method, path and client to every log line of a request.

    An incoming X-Request-ID (from the proxy or a retrying client) is reused
    and echoed back so a check-in can be followed across services. The
    completion line is logged at warning for 4xx (rejected check-ins, failed
    redemptions) and at error for 5xx.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_host=request.client.host if request.client else None,
        )

        quiet = request.url.path in QUIET_PATHS
        started = time.perf_counter()
        if not quiet:
            logger.info("request_started", query=str(request.query_params) if request.query_params else None)

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("request_failed", error=str(exc), error_type=type(exc).__name__,
                         duration_ms=_elapsed_ms(started))
            raise

        response.headers[REQUEST_ID_HEADER] = request_id

        status = response.status_code
        if status >= 500:
            log = logger.error
        elif status >= 400:
            log = logger.warning
        elif quiet:
            return response
        else:
            log = logger.info
        log("request_completed", status_code=status, duration_ms=_elapsed_ms(started))
        return response
