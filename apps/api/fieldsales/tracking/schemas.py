from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from fieldsales.tracking.emitter import LocationSample
from fieldsales.tracking.motion import ActivityType


class LocationPingCreate(LocationSample):
    pass


class LocationPingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: str
    lat: float
    lng: float
    accuracy: float | None
    speed: float
    heading: float | None
    battery_level: float | None
    is_moving: bool
    activity_type: ActivityType
    recorded_at: datetime


class TeamMemberPosition(BaseModel):
    user_id: str
    full_name: str
    ping: LocationPingRead | None
