from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from fieldsales.agent.backend import BackendClient, BackendError
from fieldsales.tracking.emitter import LocationSample


def make_client(handler) -> BackendClient:
    return BackendClient("http://backend.test/", "device-key", transport=httpx.MockTransport(handler))


def test_fetch_settings_rows_sends_credentials() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"key": "location_ping_interval", "value": {"seconds": 120}, "description": "Ping cadence"},
                {"key": "working_hours", "value": {"start": "08:00", "end": "17:00"}},
            ],
        )

    async def scenario():
        async with make_client(handler) as client:
            return await client.fetch_settings_rows()

    rows = asyncio.run(scenario())

    assert [row.key for row in rows] == ["location_ping_interval", "working_hours"]
    assert rows[0].value == {"seconds": 120}
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/api/settings/rows"
    assert request.headers["apikey"] == "device-key"
    assert request.headers["authorization"] == "Bearer device-key"


def test_insert_location_ping_posts_sample() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"id": "abc"})

    sample = LocationSample(
        user_id="rep-1",
        lat=24.86,
        lng=67.01,
        accuracy=10.0,
        speed=36.0,
        heading=None,
        battery_level=80.0,
        is_moving=True,
        activity_type="moving",
    )

    async def scenario() -> None:
        async with make_client(handler) as client:
            await client.insert_location_ping(sample)

    asyncio.run(scenario())

    assert bodies == [
        {
            "user_id": "rep-1",
            "lat": 24.86,
            "lng": 67.01,
            "accuracy": 10.0,
            "speed": 36.0,
            "heading": None,
            "battery_level": 80.0,
            "is_moving": True,
            "activity_type": "moving",
        }
    ]


def test_error_status_raises_backend_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"detail": "Cannot record pings for another user"})

    async def scenario() -> None:
        async with make_client(handler) as client:
            await client.fetch_settings_rows()

    with pytest.raises(BackendError) as exc_info:
        asyncio.run(scenario())

    assert exc_info.value.status_code == 403


def test_transport_failure_raises_backend_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def scenario() -> None:
        async with make_client(handler) as client:
            await client.fetch_settings_rows()

    with pytest.raises(BackendError) as exc_info:
        asyncio.run(scenario())

    assert exc_info.value.status_code is None
    assert "connection refused" in str(exc_info.value)
