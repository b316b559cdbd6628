from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldsales.appsettings.models import AppSettingRow
from fieldsales.appsettings.resolver import resolve_settings, settings_to_rows
from fieldsales.appsettings.schemas import DEFAULT_SETTINGS, AppSettings, SettingRowRead
from fieldsales.core.auth import AuthUser
from fieldsales.core.events import event_bus
from fieldsales.metrics import observe_settings_fetch_failure


logger = logging.getLogger("fieldsales.settings")


@dataclass(slots=True)
class AppSettingsService:
    def list_rows(self, session: Session) -> list[SettingRowRead]:
        rows = session.scalars(select(AppSettingRow).order_by(AppSettingRow.key.asc())).all()
        return [SettingRowRead.model_validate(row) for row in rows]

    def get_resolved(self, session: Session) -> AppSettings:
        try:
            rows = self.list_rows(session)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("settings.fetch_failed", extra={"error": str(exc)[:500]})
            observe_settings_fetch_failure("database")
            return DEFAULT_SETTINGS
        return resolve_settings(rows)

    def update(self, session: Session, user: AuthUser, settings: AppSettings) -> AppSettings:
        for row in settings_to_rows(settings):
            existing = session.get(AppSettingRow, row.key)
            if existing is None:
                session.add(AppSettingRow(key=row.key, value=row.value, updated_by=user.sub))
            else:
                existing.value = row.value
                existing.updated_by = user.sub
        session.commit()

        resolved = self.get_resolved(session)
        logger.info("settings.updated", extra={"user_id": user.sub})
        event_bus.publish("settings.updated", {"updated_by": user.sub, "settings": resolved.model_dump()})
        return resolved


app_settings_service = AppSettingsService()
