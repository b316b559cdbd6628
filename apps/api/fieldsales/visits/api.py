from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fieldsales.appsettings.service import app_settings_service
from fieldsales.core.auth import AuthUser
from fieldsales.core.database import get_db
from fieldsales.core.rbac import require_authenticated
from fieldsales.visits.schemas import CheckInValidationRequest, GPSValidationResult
from fieldsales.visits.service import validate_checkin


router = APIRouter(prefix="/api/visits", tags=["visits"])


@router.post("/validate-checkin", response_model=GPSValidationResult)
def validate_visit_checkin(
    payload: CheckInValidationRequest,
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_authenticated),
) -> GPSValidationResult:
    return validate_checkin(payload, app_settings_service.get_resolved(db))
