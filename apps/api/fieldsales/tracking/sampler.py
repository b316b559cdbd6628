from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GeolocationError(Exception):
    """A position fix could not be obtained."""


class GeolocationTimeoutError(GeolocationError):
    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"no position fix within {timeout:g}s")


class StaleFixError(GeolocationError):
    def __init__(self, age_seconds: float, maximum_age: float) -> None:
        self.age_seconds = age_seconds
        self.maximum_age = maximum_age
        super().__init__(f"position fix is {age_seconds:.3f}s old, maximum age is {maximum_age:g}s")


@dataclass(frozen=True, slots=True)
class PositionFix:
    latitude: float
    longitude: float
    accuracy: float
    speed: float | None = None
    heading: float | None = None
    timestamp: datetime = field(default_factory=utcnow)


class PositionProvider(Protocol):
    async def get_current_position(
        self,
        *,
        enable_high_accuracy: bool,
        timeout: float,
        maximum_age: float,
    ) -> PositionFix: ...


class FixedPositionProvider:
    """Reports the same coordinates on every request, stamped at request time."""

    def __init__(self, latitude: float, longitude: float, accuracy: float = 25.0) -> None:
        self.latitude = latitude
        self.longitude = longitude
        self.accuracy = accuracy

    async def get_current_position(
        self,
        *,
        enable_high_accuracy: bool,
        timeout: float,
        maximum_age: float,
    ) -> PositionFix:
        return PositionFix(latitude=self.latitude, longitude=self.longitude, accuracy=self.accuracy, speed=0.0)


class PositionSampler:
    """Requests exactly one fresh, high-accuracy fix per call. Never retries."""

    def __init__(
        self,
        provider: PositionProvider,
        *,
        timeout: float = 10.0,
        maximum_age: float = 0.0,
        enable_high_accuracy: bool = True,
    ) -> None:
        self.provider = provider
        self.timeout = timeout
        self.maximum_age = maximum_age
        self.enable_high_accuracy = enable_high_accuracy

    async def sample(self) -> PositionFix:
        requested_at = utcnow()
        try:
            fix = await asyncio.wait_for(
                self.provider.get_current_position(
                    enable_high_accuracy=self.enable_high_accuracy,
                    timeout=self.timeout,
                    maximum_age=self.maximum_age,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise GeolocationTimeoutError(self.timeout) from exc

        age_seconds = (requested_at - fix.timestamp).total_seconds()
        if age_seconds > self.maximum_age:
            raise StaleFixError(age_seconds, self.maximum_age)
        return fix
