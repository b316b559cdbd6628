from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from fieldsales.context import get_correlation_id, new_correlation_id
from fieldsales.core.auth import ANONYMOUS, decode_bearer_claims
from fieldsales.core.config import get_settings


logger = logging.getLogger("fieldsales.ratelimit")

LIMITED_PREFIX = "/api/tracking"
WINDOW_SECONDS = 60


@dataclass
class TokenBucket:
    capacity: float
    refill_per_second: float
    tokens: float
    updated_at: float

    def consume(self, now: float) -> float:
        """Take one token. Returns 0 on success, else seconds until one is available."""
        self.tokens = min(self.capacity, self.tokens + (now - self.updated_at) * self.refill_per_second)
        self.updated_at = now
        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return 0.0
        return (1.0 - self.tokens) / self.refill_per_second

    def is_idle(self, now: float) -> bool:
        """True once a full window has passed, by which time the bucket is back to capacity."""
        return now - self.updated_at >= WINDOW_SECONDS


class PerUserRateLimiter:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: dict[str, TokenBucket] = {}
        self._last_prune = clock()

    def check(self, user_id: str, per_minute: int) -> int:
        """Seconds the caller must wait, or 0 when the request may proceed."""
        if per_minute <= 0:
            return WINDOW_SECONDS

        now = self._clock()
        with self._lock:
            if now - self._last_prune >= WINDOW_SECONDS:
                self._prune(now)
            bucket = self._buckets.get(user_id)
            if bucket is None or bucket.capacity != per_minute:
                bucket = TokenBucket(
                    capacity=float(per_minute),
                    refill_per_second=per_minute / WINDOW_SECONDS,
                    tokens=float(per_minute),
                    updated_at=now,
                )
                self._buckets[user_id] = bucket
            wait = bucket.consume(now)
        return max(1, math.ceil(wait)) if wait else 0

    @property
    def bucket_count(self) -> int:
        return len(self._buckets)

    def _prune(self, now: float) -> None:
        idle = [user_id for user_id, bucket in self._buckets.items() if bucket.is_idle(now)]
        for user_id in idle:
            del self._buckets[user_id]
        self._last_prune = now

    def clear(self) -> None:
        with self._lock:
            self._buckets.clear()


_limiter = PerUserRateLimiter()


def _caller_id(request: Request) -> str:
    claims = decode_bearer_claims(request)
    if not claims or claims.get("sub") is None:
        return ANONYMOUS
    return str(claims["sub"])


class TrackingIngestRateLimitMiddleware(BaseHTTPMiddleware):
    """Throttles location ping ingestion per caller. Reads are never limited."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        if request.method != "POST" or not request.url.path.startswith(LIMITED_PREFIX):
            return await call_next(request)

        settings = get_settings()
        if settings.rate_limit_disabled:
            return await call_next(request)

        caller = _caller_id(request)
        retry_after = _limiter.check(caller, settings.rate_limit_tracking_pings_per_minute)
        if not retry_after:
            return await call_next(request)

        correlation_id = get_correlation_id() or getattr(request.state, "correlation_id", None) or new_correlation_id()
        logger.warning("ratelimit.rejected", extra={"user_id": caller, "path": request.url.path})
        return JSONResponse(
            status_code=429,
            content={
                "code": "RATE_LIMITED",
                "message": "Too many location pings",
                "details": {"retry_after_seconds": retry_after},
                "correlation_id": correlation_id,
            },
            headers={"Retry-After": str(retry_after)},
        )


def reset_rate_limiter() -> None:
    _limiter.clear()
