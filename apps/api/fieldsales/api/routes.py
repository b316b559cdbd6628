from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from fieldsales.appsettings.api import client_config_router, router as settings_router
from fieldsales.core.auth import ADMIN_ROLE, AuthUser, get_current_user
from fieldsales.core.config import get_settings
from fieldsales.metrics import generate_metrics_payload, metrics_content_type
from fieldsales.team.api import router as team_router
from fieldsales.territories.api import router as territories_router
from fieldsales.tracking.api import router as tracking_router
from fieldsales.visits.api import router as visits_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(client_config_router)
router.include_router(tracking_router)
router.include_router(team_router)
router.include_router(territories_router)
router.include_router(visits_router)


@router.get("/health", tags=["system"])
def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
    }


@router.get("/me", tags=["auth"])
async def me(user: AuthUser = Depends(get_current_user)) -> dict[str, str | list[str]]:
    return {
        "sub": user.sub,
        "roles": user.roles,
    }


@router.get("/metrics", tags=["system"])
def metrics(user: AuthUser = Depends(get_current_user)) -> Response:
    settings = get_settings()
    if not settings.metrics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    if ADMIN_ROLE not in user.roles:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Missing role: {ADMIN_ROLE}")
    return Response(content=generate_metrics_payload(), media_type=metrics_content_type())
