from __future__ import annotations

import logging
from typing import Any

import httpx

from fieldsales.appsettings.schemas import SettingRow
from fieldsales.tracking.emitter import LocationSample


logger = logging.getLogger("fieldsales.agent.backend")


class BackendError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class BackendClient:
    """Thin async client for the settings and tracking endpoints of the API."""

    def __init__(
        self,
        base_url: str,
        access_key: str,
        *,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"apikey": access_key, "Content-Type": "application/json"}
        if access_key:
            headers["Authorization"] = f"Bearer {access_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_settings_rows(self) -> list[SettingRow]:
        response = await self._request("GET", "/api/settings/rows")
        payload = response.json()
        if not isinstance(payload, list):
            raise BackendError("settings rows response is not a list", response.status_code)
        return [SettingRow.model_validate(item) for item in payload]

    async def insert_location_ping(self, sample: LocationSample) -> None:
        await self._request("POST", "/api/tracking/pings", json=sample.model_dump(mode="json"))

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise BackendError(f"{method} {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            raise BackendError(
                f"{method} {path} returned {response.status_code}: {response.text[:200]}",
                response.status_code,
            )
        logger.debug("backend.request", extra={"method": method, "path": path, "status_code": response.status_code})
        return response
