from __future__ import annotations

import re

from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from fieldsales.context import new_correlation_id, reset_correlation_id, set_correlation_id


CORRELATION_HEADER = "x-correlation-id"
_INBOUND_HEADERS = (CORRELATION_HEADER, "x-request-id")
_MAX_LENGTH = 128
_SAFE_VALUE = re.compile(r"^[A-Za-z0-9._:\-]+$")


def inbound_correlation_id(request: Request) -> str | None:
    """First usable id a caller supplied, or None. Oversized or odd values are ignored."""
    for header in _INBOUND_HEADERS:
        value = request.headers.get(header, "").strip()
        if value and len(value) <= _MAX_LENGTH and _SAFE_VALUE.match(value):
            return value
    return None


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds one correlation id per request and echoes it as ``X-Correlation-Id``."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        correlation_id = inbound_correlation_id(request) or new_correlation_id()
        request.state.correlation_id = correlation_id

        current_span = trace.get_current_span()
        if current_span.is_recording():
            current_span.set_attribute("correlation_id", correlation_id)

        token = set_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            reset_correlation_id(token)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
