from __future__ import annotations

import logging
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fieldsales.core.config import get_settings
from fieldsales.core.database import Base, get_db
from fieldsales.main import app
from fieldsales.middleware.rate_limit import PerUserRateLimiter, reset_rate_limiter


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
    monkeypatch.setenv("METRICS_ENABLED", "true")
    monkeypatch.setenv("RATE_LIMIT_DISABLED", "true")
    get_settings.cache_clear()
    reset_rate_limiter()
    yield
    get_settings.cache_clear()
    reset_rate_limiter()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _bearer(sub: str, role: str) -> dict[str, str]:
    settings = get_settings()
    token = jwt.encode({"sub": sub, "role": role}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}


def _ping(user_id: str) -> dict:
    return {"user_id": user_id, "lat": 31.5204, "lng": 74.3587, "speed": 0, "is_moving": False, "activity_type": "stationary"}


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_me_reads_role_claim(client: TestClient) -> None:
    response = client.get("/me", headers=_bearer("sup-7", "supervisor"))
    assert response.json() == {"sub": "sup-7", "roles": ["supervisor"]}

    anonymous = client.get("/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert anonymous.json() == {"sub": "anonymous", "roles": ["guest"]}


def test_metrics_require_country_head(client: TestClient) -> None:
    assert client.post("/api/tracking/pings", json=_ping("rep-1"), headers=_bearer("rep-1", "sales_rep")).status_code == 201

    denied = client.get("/metrics", headers=_bearer("rep-1", "sales_rep"))
    assert denied.status_code == 403

    response = client.get("/metrics", headers=_bearer("head-1", "country_head"))
    assert response.status_code == 200
    body = response.text
    assert "http_requests_total" in body
    assert "http_request_duration_seconds" in body
    assert "tracking_pings_ingested_total" in body
    assert 'path="/api/tracking/pings"' in body


def test_metrics_hidden_when_disabled(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRICS_ENABLED", "false")
    get_settings.cache_clear()

    assert client.get("/metrics", headers=_bearer("head-1", "country_head")).status_code == 404


def test_correlation_id_generated_and_echoed(client: TestClient) -> None:
    generated = client.get("/health")
    assert generated.headers.get("x-correlation-id")

    echoed = client.get("/health", headers={"X-Correlation-Id": "abc-123"})
    assert echoed.headers.get("x-correlation-id") == "abc-123"


def test_request_log_carries_correlation_id(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    response = client.post(
        "/api/tracking/pings",
        json=_ping("rep-1"),
        headers={**_bearer("rep-1", "sales_rep"), "X-Correlation-Id": "corr-ping-1"},
    )
    assert response.status_code == 201

    records = [record for record in caplog.records if record.name == "fieldsales.request" and record.getMessage() == "http.request"]
    assert any(
        getattr(record, "correlation_id", None) == "corr-ping-1"
        and getattr(record, "method", None) == "POST"
        and getattr(record, "path", None) == "/api/tracking/pings"
        and getattr(record, "status_code", None) == 201
        and isinstance(getattr(record, "duration_ms", None), float)
        for record in records
    )
    ping_records = [record for record in caplog.records if record.getMessage() == "tracking.ping_recorded"]
    assert ping_records and getattr(ping_records[-1], "correlation_id", None) == "corr-ping-1"


def test_ping_ingestion_is_rate_limited_per_user(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_DISABLED", "false")
    monkeypatch.setenv("RATE_LIMIT_TRACKING_PINGS_PER_MINUTE", "2")
    get_settings.cache_clear()
    reset_rate_limiter()

    headers = _bearer("rep-1", "sales_rep")
    statuses = [client.post("/api/tracking/pings", json=_ping("rep-1"), headers=headers).status_code for _ in range(3)]
    assert statuses == [201, 201, 429]

    limited = client.post("/api/tracking/pings", json=_ping("rep-1"), headers=headers)
    body = limited.json()
    assert body["code"] == "RATE_LIMITED"
    assert body["correlation_id"] == limited.headers["x-correlation-id"]
    assert limited.headers.get("Retry-After") is not None

    other = client.post("/api/tracking/pings", json=_ping("rep-2"), headers=_bearer("rep-2", "sales_rep"))
    assert other.status_code == 201

    reads = [client.get("/api/tracking/pings", headers=headers).status_code for _ in range(5)]
    assert all(status == 200 for status in reads)


def test_rate_limiter_drops_idle_buckets() -> None:
    now = [1000.0]
    limiter = PerUserRateLimiter(clock=lambda: now[0])

    for user_id in ("rep-1", "rep-2", "rep-3"):
        assert limiter.check(user_id, 2) == 0
    assert limiter.bucket_count == 3

    now[0] += 40
    assert limiter.check("rep-1", 2) == 0
    assert limiter.check("rep-1", 2) == 0
    assert limiter.check("rep-1", 2) > 0
    assert limiter.bucket_count == 3

    now[0] += 45
    assert limiter.check("rep-4", 2) == 0
    # rep-2 and rep-3 have been idle for a full window; rep-1 was used 45s ago
    assert limiter.bucket_count == 2
    assert limiter.check("rep-1", 2) == 0
    assert limiter.check("rep-2", 2) == 0
    assert limiter.check("rep-2", 2) == 0
    assert limiter.check("rep-2", 2) > 0
