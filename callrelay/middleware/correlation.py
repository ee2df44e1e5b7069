"""
Correlation ID middleware for request tracing.

Every log line written while a request is handled carries its ID, so one
webhook delivery can be followed from receipt to the provider call.
"""
import time
import uuid
from contextvars import ContextVar
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from loguru import logger

RESPONSE_HEADER = "X-Correlation-ID"

# Headers checked for a caller-supplied ID, in order
INBOUND_HEADERS = ("X-Correlation-ID", "X-Request-ID")

_current_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """ID of the request being handled, or an empty string outside a request."""
    return _current_id.get()


def _incoming_id(request: Request) -> str:
    for header in INBOUND_HEADERS:
        value = request.headers.get(header, "").strip()
        if value:
            return value[:64]
    return uuid.uuid4().hex[:8]


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds a correlation ID to the request context and logs the outcome."""

    async def dispatch(self, request: Request, call_next):
        reset_token = _current_id.set(_incoming_id(request))
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[RESPONSE_HEADER] = get_correlation_id()
            logger.debug(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"({(time.perf_counter() - started) * 1000:.0f} ms)"
            )
            return response
        finally:
            _current_id.reset(reset_token)


def correlation_id_filter(record):
    """Loguru filter that stamps records with the current correlation ID."""
    record["extra"]["correlation_id"] = get_correlation_id() or "-"
    return True
