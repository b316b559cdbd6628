from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fieldsales.core.auth import AuthUser
from fieldsales.core.database import get_db
from fieldsales.core.rbac import require_authenticated
from fieldsales.team.schemas import TeamMember
from fieldsales.team.service import team_service


router = APIRouter(prefix="/api/team", tags=["team"])


@router.get("", response_model=list[TeamMember])
def get_my_team(
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_authenticated),
) -> list[TeamMember]:
    return team_service.get_team(db, user.sub)
