from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fieldsales.core.auth import ANONYMOUS, AuthUser, get_current_user
from fieldsales.core.config import get_settings
from fieldsales.core.database import Base, get_db
from fieldsales.main import app
from fieldsales.middleware.rate_limit import reset_rate_limiter
from fieldsales.team.models import Profile
from fieldsales.territories.models import Area, Division, Region, Territory


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
    get_settings.cache_clear()
    reset_rate_limiter()
    yield
    get_settings.cache_clear()
    reset_rate_limiter()


@pytest.fixture()
def acting() -> dict[str, AuthUser]:
    return {"user": AuthUser(sub="rep-1", roles=["sales_rep"])}


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


def _profile(id: str, role: str, territory_ids: list[str] | None, *, is_active: bool = True) -> Profile:
    return Profile(
        id=id,
        employee_code=f"E-{id}",
        full_name=id.title(),
        email=f"{id}@example.com",
        role=role,
        territory_ids=territory_ids,
        is_active=is_active,
    )


def _territory(id: str, name: str, *, area_id: str | None = None, supervisor_id: str | None = None, is_active: bool = True) -> Territory:
    return Territory(
        id=id,
        name=name,
        code=id.upper(),
        color="#2563eb",
        region="Punjab",
        area_id=area_id,
        supervisor_id=supervisor_id,
        center_lat=31.52,
        center_lng=74.35,
        is_active=is_active,
    )


@pytest.fixture()
def seeded(db_session: Session) -> None:
    db_session.add_all(
        [
            _profile("ch-1", "country_head", None),
            _profile("rm-1", "regional_manager", None),
            _profile("rep-1", "sales_rep", ["t-north", "t-west"]),
            _profile("rep-2", "sales_rep", ["t-north", "t-south"]),
            _profile("rep-3", "sales_rep", ["t-north"], is_active=False),
        ]
    )
    db_session.add(Division(id="d-1", name="North Division"))
    db_session.add_all([Region(id="r-1", name="Punjab", division_id="d-1"), Region(id="r-2", name="Sindh")])
    db_session.flush()
    db_session.add_all([Area(id="a-1", name="Lahore", region_id="r-1"), Area(id="a-2", name="Karachi", region_id="r-2")])
    db_session.flush()
    db_session.add_all(
        [
            _territory("t-north", "North Zone", area_id="a-1"),
            _territory("t-south", "South Zone", area_id="a-2"),
            _territory("t-east", "East Zone", supervisor_id="rm-1"),
            _territory("t-west", "West Zone", area_id="a-1", is_active=False),
        ]
    )
    db_session.commit()


@pytest.mark.usefixtures("seeded")
def test_country_head_sees_every_active_territory(client: TestClient, acting: dict[str, AuthUser]) -> None:
    acting["user"] = AuthUser(sub="ch-1", roles=["country_head"])
    response = client.get("/api/territories")
    assert response.status_code == 200
    assert [row["name"] for row in response.json()] == ["East Zone", "North Zone", "South Zone"]


@pytest.mark.usefixtures("seeded")
def test_rep_sees_assigned_territories_only(client: TestClient) -> None:
    response = client.get("/api/territories")
    assert response.status_code == 200
    body = response.json()
    assert [row["id"] for row in body] == ["t-north"]
    assert body[0]["code"] == "T-NORTH"
    assert body[0]["area_id"] == "a-1"


@pytest.mark.usefixtures("seeded")
def test_supervisor_sees_supervised_territory(client: TestClient, acting: dict[str, AuthUser]) -> None:
    acting["user"] = AuthUser(sub="rm-1", roles=["regional_manager"])
    response = client.get("/api/territories")
    assert [row["id"] for row in response.json()] == ["t-east"]


@pytest.mark.usefixtures("seeded")
def test_unknown_profile_sees_nothing(client: TestClient, acting: dict[str, AuthUser]) -> None:
    acting["user"] = AuthUser(sub="ghost", roles=["sales_rep"])
    assert client.get("/api/territories").json() == []


@pytest.mark.usefixtures("seeded")
def test_territory_detail_counts_active_reps(client: TestClient) -> None:
    response = client.get("/api/territories/t-north")
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "North Zone"
    assert body["active_reps"] == 2


@pytest.mark.usefixtures("seeded")
def test_territory_detail_enforces_visibility(client: TestClient) -> None:
    assert client.get("/api/territories/t-south").status_code == 403
    assert client.get("/api/territories/t-missing").status_code == 404


@pytest.mark.usefixtures("seeded")
def test_hierarchy_nests_divisions_regions_and_areas(client: TestClient) -> None:
    response = client.get("/api/territories/hierarchy")
    assert response.status_code == 200
    body = response.json()

    assert [division["name"] for division in body["divisions"]] == ["North Division"]
    punjab = body["divisions"][0]["regions"][0]
    assert punjab["name"] == "Punjab"
    assert [area["name"] for area in punjab["areas"]] == ["Lahore"]
    assert [territory["id"] for territory in punjab["areas"][0]["territories"]] == ["t-north"]

    assert [region["name"] for region in body["unassigned_regions"]] == ["Sindh"]
    karachi = body["unassigned_regions"][0]["areas"][0]
    assert [territory["id"] for territory in karachi["territories"]] == ["t-south"]


def test_territories_require_authentication(client: TestClient, acting: dict[str, AuthUser]) -> None:
    acting["user"] = AuthUser(sub=ANONYMOUS, roles=["guest"])
    assert client.get("/api/territories").status_code == 401
    assert client.get("/api/territories/hierarchy").status_code == 401
