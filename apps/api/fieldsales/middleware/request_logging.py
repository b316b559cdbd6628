from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from fieldsales.metrics import observe_http_request, resolve_http_path_label


logger = logging.getLogger("fieldsales.request")

# Scraped or polled constantly; counted in metrics but kept out of the log.
_QUIET_PATHS = frozenset({"/health", "/metrics"})


def _finish(request: Request, status_code: int, started: float, *, failed: bool = False) -> None:
    duration_seconds = time.perf_counter() - started
    path = resolve_http_path_label(request)
    observe_http_request(method=request.method, path=path, status=status_code, duration=duration_seconds)
    if path in _QUIET_PATHS and not failed:
        return

    fields = {
        "method": request.method,
        "path": path,
        "status_code": status_code,
        "duration_ms": round(duration_seconds * 1000, 2),
        "user_id": getattr(request.state, "user_id", None),
    }
    if failed:
        logger.error("http.error", exc_info=True, extra=fields)
    elif status_code >= 500:
        logger.error("http.request", extra=fields)
    elif status_code >= 400:
        logger.warning("http.request", extra=fields)
    else:
        logger.info("http.request", extra=fields)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            _finish(request, 500, started, failed=True)
            raise
        _finish(request, response.status_code, started)
        return response
