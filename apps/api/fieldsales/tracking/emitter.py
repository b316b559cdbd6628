from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from fieldsales.tracking.motion import ActivityType, classify_motion, mps_to_kmh
from fieldsales.tracking.sampler import PositionFix


class LocationSample(BaseModel):
    """One persisted reading. Speed is in km/h."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1)
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    accuracy: float | None = Field(default=None, ge=0)
    speed: float = Field(default=0.0, ge=0)
    heading: float | None = None
    battery_level: float | None = Field(default=None, ge=0, le=100)
    is_moving: bool = False
    activity_type: ActivityType = "stationary"


class SampleWriter(Protocol):
    async def insert_location_ping(self, sample: LocationSample) -> None: ...


def build_sample(user_id: str, fix: PositionFix, battery_level: float | None = None) -> LocationSample:
    """Package a fix for persistence; ``battery_level`` is a 0..1 fraction."""
    motion = classify_motion(fix.speed)
    return LocationSample(
        user_id=user_id,
        lat=fix.latitude,
        lng=fix.longitude,
        accuracy=fix.accuracy,
        speed=mps_to_kmh(fix.speed),
        heading=fix.heading,
        battery_level=None if battery_level is None else round(battery_level * 100, 2),
        is_moving=motion.is_moving,
        activity_type=motion.activity_type,
    )
