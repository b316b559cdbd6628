from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fieldsales.core.database import Base
from fieldsales.team.models import utcnow


def new_id() -> str:
    return str(uuid.uuid4())


class Division(Base):
    __tablename__ = "division"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class Region(Base):
    __tablename__ = "region"
    __table_args__ = (Index("ix_region_division_id", "division_id"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    division_id: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("division.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class Area(Base):
    __tablename__ = "area"
    __table_args__ = (Index("ix_area_region_id", "region_id"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    region_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("region.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class Territory(Base):
    __tablename__ = "territory"
    __table_args__ = (
        Index("ix_territory_area_id", "area_id"),
        Index("ix_territory_supervisor_id", "supervisor_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    region: Mapped[str | None] = mapped_column(String(128), nullable=True)
    area: Mapped[str | None] = mapped_column(String(128), nullable=True)
    area_id: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("area.id", ondelete="SET NULL"),
        nullable=True,
    )
    supervisor_id: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("profile.id", ondelete="SET NULL"),
        nullable=True,
    )
    geojson: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    center_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    center_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    zoom_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    target_monthly: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    boundary: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
