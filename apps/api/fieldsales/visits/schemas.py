from __future__ import annotations

from pydantic import BaseModel, Field


class CheckInValidationRequest(BaseModel):
    customer_lat: float = Field(ge=-90, le=90)
    customer_lng: float = Field(ge=-180, le=180)
    checkin_lat: float = Field(ge=-90, le=90)
    checkin_lng: float = Field(ge=-180, le=180)
    speed: float = Field(default=0.0, ge=0, description="km/h")


class GPSValidationResult(BaseModel):
    is_valid: bool
    distance: float
    message: str | None = None
