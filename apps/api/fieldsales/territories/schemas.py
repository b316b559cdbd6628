from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TerritoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str
    color: str | None = None
    region: str | None = None
    area: str | None = None
    area_id: str | None = None
    supervisor_id: str | None = None
    geojson: dict[str, Any] | None = None
    center_lat: float | None = None
    center_lng: float | None = None
    zoom_level: int | None = None
    target_monthly: Decimal | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class TerritoryDetail(TerritoryRead):
    active_reps: int = 0


class TerritorySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str


class AreaNode(BaseModel):
    id: str
    name: str
    territories: list[TerritorySummary] = Field(default_factory=list)


class RegionNode(BaseModel):
    id: str
    name: str
    areas: list[AreaNode] = Field(default_factory=list)


class DivisionNode(BaseModel):
    id: str
    name: str
    regions: list[RegionNode] = Field(default_factory=list)


class HierarchyRead(BaseModel):
    divisions: list[DivisionNode] = Field(default_factory=list)
    unassigned_regions: list[RegionNode] = Field(default_factory=list)
