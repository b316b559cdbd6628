from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fieldsales.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_profile_id() -> str:
    return str(uuid.uuid4())


class Profile(Base):
    __tablename__ = "profile"
    __table_args__ = (Index("ix_profile_reports_to", "reports_to"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_profile_id)
    employee_code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="sales_rep", server_default="sales_rep")
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    reports_to: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("profile.id", ondelete="SET NULL"),
        nullable=True,
    )
    territory_ids: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    target_monthly: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
