from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from fieldsales.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LocationPing(Base):
    """Append-only log of rep positions. Rows are never updated."""

    __tablename__ = "location_ping"
    __table_args__ = (Index("ix_location_ping_user_recorded", "user_id", "recorded_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    accuracy: Mapped[float | None] = mapped_column(Float, nullable=True)
    speed: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, server_default="0")
    heading: Mapped[float | None] = mapped_column(Float, nullable=True)
    battery_level: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_moving: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    activity_type: Mapped[str] = mapped_column(String(16), nullable=False, default="stationary")
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
