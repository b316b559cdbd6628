from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fieldsales.appsettings.schemas import AppSettings, ClientConfigRead, SettingRowRead
from fieldsales.appsettings.service import app_settings_service
from fieldsales.core.auth import ADMIN_ROLE, AuthUser
from fieldsales.core.config import get_settings
from fieldsales.core.database import get_db
from fieldsales.core.rbac import require_authenticated, require_roles


router = APIRouter(prefix="/api/settings", tags=["settings"])
client_config_router = APIRouter(prefix="/api", tags=["settings"])


@router.get("", response_model=AppSettings)
def get_app_settings(
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_authenticated),
) -> AppSettings:
    return app_settings_service.get_resolved(db)


@router.get("/rows", response_model=list[SettingRowRead])
def list_setting_rows(
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_authenticated),
) -> list[SettingRowRead]:
    return app_settings_service.list_rows(db)


@router.put("", response_model=AppSettings)
def update_app_settings(
    payload: AppSettings,
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_roles(ADMIN_ROLE)),
) -> AppSettings:
    return app_settings_service.update(db, user, payload)


@client_config_router.get("/client-config", response_model=ClientConfigRead)
def get_client_config() -> ClientConfigRead:
    settings = get_settings()
    return ClientConfigRead(app_name=settings.app_name, maps_api_key=settings.maps_api_key or None)
