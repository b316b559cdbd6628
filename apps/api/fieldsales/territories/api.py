from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fieldsales.core.auth import AuthUser
from fieldsales.core.database import get_db
from fieldsales.core.rbac import require_authenticated
from fieldsales.territories.schemas import HierarchyRead, TerritoryDetail, TerritoryRead
from fieldsales.territories.service import territory_service


router = APIRouter(prefix="/api/territories", tags=["territories"])


@router.get("", response_model=list[TerritoryRead])
def list_territories(
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_authenticated),
) -> list[TerritoryRead]:
    return territory_service.visible_territories(db, user)


@router.get("/hierarchy", response_model=HierarchyRead)
def get_hierarchy(
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_authenticated),
) -> HierarchyRead:
    return territory_service.hierarchy(db)


@router.get("/{territory_id}", response_model=TerritoryDetail)
def get_territory(
    territory_id: str,
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_authenticated),
) -> TerritoryDetail:
    return territory_service.get_territory(db, user, territory_id)
