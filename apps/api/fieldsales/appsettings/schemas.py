from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fieldsales.tracking.hours import format_hhmm, parse_hhmm


class AppSettings(BaseModel):
    """Typed view of the keyed ``app_setting`` rows, fully populated with defaults."""

    model_config = ConfigDict(frozen=True)

    visit_geofence_radius: float = Field(default=200, ge=0)
    max_check_in_speed: float = Field(default=10, ge=0)
    location_ping_interval: int = Field(default=300, gt=0)
    working_hours_start: str = "09:00"
    working_hours_end: str = "18:00"
    cement_slab_rate: float = 0.8
    cement_column_rate: float = 1.2
    cement_beam_rate: float = 0.6
    cement_foundation_rate: float = 1.0

    @field_validator("working_hours_start", "working_hours_end")
    @classmethod
    def _normalize_hhmm(cls, value: str) -> str:
        return format_hhmm(parse_hhmm(value))


DEFAULT_SETTINGS = AppSettings()


class SettingRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str = Field(min_length=1)
    value: dict[str, Any] = Field(default_factory=dict)


class SettingRowRead(SettingRow):
    description: str | None = None
    updated_by: str | None = None
    updated_at: datetime | None = None


class ClientConfigRead(BaseModel):
    app_name: str
    maps_api_key: str | None
