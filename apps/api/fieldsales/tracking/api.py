from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from fieldsales.core.auth import AuthUser
from fieldsales.core.database import get_db
from fieldsales.core.rbac import require_authenticated
from fieldsales.tracking.schemas import LocationPingCreate, LocationPingRead, TeamMemberPosition
from fieldsales.tracking.service import MAX_LIST_LIMIT, location_ping_service


router = APIRouter(prefix="/api/tracking", tags=["tracking"])


@router.post("/pings", response_model=LocationPingRead, status_code=status.HTTP_201_CREATED)
def record_ping(
    payload: LocationPingCreate,
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_authenticated),
) -> LocationPingRead:
    return location_ping_service.record_ping(db, user, payload)


@router.get("/pings", response_model=list[LocationPingRead])
def list_pings(
    user_id: str | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=MAX_LIST_LIMIT),
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_authenticated),
) -> list[LocationPingRead]:
    return location_ping_service.list_pings(db, user, user_id=user_id, limit=limit)


@router.get("/team/latest", response_model=list[TeamMemberPosition])
def latest_team_positions(
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_authenticated),
) -> list[TeamMemberPosition]:
    return location_ping_service.latest_team_positions(db, user)
