from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fieldsales.appsettings.models import AppSettingRow
from fieldsales.core.auth import AuthUser, get_current_user
from fieldsales.core.config import get_settings
from fieldsales.core.database import Base, get_db
from fieldsales.core.events import InternalEvent, event_bus
from fieldsales.main import app
from fieldsales.middleware.rate_limit import reset_rate_limiter


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def setup_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("RATE_LIMIT_DISABLED", "true")
    monkeypatch.setenv("MAPS_API_KEY", "maps-key-1")
    get_settings.cache_clear()
    reset_rate_limiter()
    yield
    get_settings.cache_clear()
    reset_rate_limiter()


@pytest.fixture()
def acting() -> dict[str, AuthUser]:
    return {"user": AuthUser(sub="head-1", roles=["country_head"])}


@pytest.fixture()
def client(db_session: Session, acting: dict[str, AuthUser]) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    def override_get_current_user() -> AuthUser:
        return acting["user"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_settings_default_when_table_empty(client: TestClient) -> None:
    response = client.get("/api/settings")

    assert response.status_code == 200
    body = response.json()
    assert body["visit_geofence_radius"] == 200
    assert body["max_check_in_speed"] == 10
    assert body["location_ping_interval"] == 300
    assert body["working_hours_start"] == "09:00"
    assert body["working_hours_end"] == "18:00"
    assert body["cement_foundation_rate"] == 1.0


def test_settings_overlay_stored_rows(client: TestClient, db_session: Session) -> None:
    db_session.add_all(
        [
            AppSettingRow(key="location_ping_interval", value={"seconds": 120}),
            AppSettingRow(key="working_hours", value={"start": "08:00"}),
            AppSettingRow(key="dashboard_theme", value={"seconds": 1}),
        ]
    )
    db_session.commit()

    body = client.get("/api/settings").json()

    assert body["location_ping_interval"] == 120
    assert body["working_hours_start"] == "08:00"
    assert body["working_hours_end"] == "18:00"

    rows = client.get("/api/settings/rows").json()
    assert [row["key"] for row in rows] == ["dashboard_theme", "location_ping_interval", "working_hours"]


def test_country_head_updates_settings(client: TestClient, db_session: Session) -> None:
    received: list[InternalEvent] = []
    event_bus.subscribe("settings.updated", received.append)
    try:
        response = client.put(
            "/api/settings",
            json={
                "visit_geofence_radius": 150,
                "max_check_in_speed": 12,
                "location_ping_interval": 60,
                "working_hours_start": "08:30",
                "working_hours_end": "19:00",
            },
        )
    finally:
        event_bus.unsubscribe("settings.updated", received.append)

    assert response.status_code == 200
    assert response.json()["location_ping_interval"] == 60

    stored = db_session.scalar(select(AppSettingRow).where(AppSettingRow.key == "working_hours"))
    assert stored is not None
    assert stored.value == {"start": "08:30", "end": "19:00"}
    assert stored.updated_by == "head-1"
    assert received and received[-1].payload["updated_by"] == "head-1"

    assert client.get("/api/settings").json()["max_check_in_speed"] == 12


def test_non_admin_cannot_update_settings(client: TestClient, acting: dict[str, AuthUser]) -> None:
    acting["user"] = AuthUser(sub="sup-1", roles=["supervisor"])

    response = client.put("/api/settings", json={"location_ping_interval": 30})

    assert response.status_code == 403
    assert response.json()["detail"] == "Missing role: country_head"


def test_update_rejects_invalid_values(client: TestClient) -> None:
    response = client.put("/api/settings", json={"location_ping_interval": 0, "working_hours_start": "25:00"})
    assert response.status_code == 422


def test_anonymous_caller_is_rejected(client: TestClient, acting: dict[str, AuthUser]) -> None:
    acting["user"] = AuthUser(sub="anonymous", roles=["guest"])
    assert client.get("/api/settings").status_code == 401


def test_client_config_exposes_maps_key(client: TestClient) -> None:
    response = client.get("/api/client-config")

    assert response.status_code == 200
    assert response.json() == {"app_name": "Field Sales API", "maps_api_key": "maps-key-1"}
