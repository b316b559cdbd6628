from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr


class TeamMember(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    email: EmailStr
    role: str
    avatar_url: str | None = None
    phone: str | None = None
    territory_ids: list[str] | None = None
    target_monthly: Decimal | None = None
