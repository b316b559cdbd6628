from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Protocol

from pydantic import ValidationError

from fieldsales.appsettings.schemas import DEFAULT_SETTINGS, AppSettings, SettingRow
from fieldsales.metrics import observe_settings_fetch_failure


logger = logging.getLogger("fieldsales.settings")

# setting key -> {value sub-field: AppSettings field}
SETTING_KEY_FIELDS: dict[str, dict[str, str]] = {
    "visit_geofence_radius": {"meters": "visit_geofence_radius"},
    "max_check_in_speed": {"kmh": "max_check_in_speed"},
    "location_ping_interval": {"seconds": "location_ping_interval"},
    "working_hours": {"start": "working_hours_start", "end": "working_hours_end"},
    "cement_calculator_rates": {
        "slab_per_sqft": "cement_slab_rate",
        "column_per_sqft": "cement_column_rate",
        "beam_per_sqft": "cement_beam_rate",
        "foundation_per_sqft": "cement_foundation_rate",
    },
}


def _row_key_value(row: SettingRow | Mapping[str, Any]) -> tuple[str | None, Any]:
    if isinstance(row, Mapping):
        return row.get("key"), row.get("value")
    return row.key, row.value


def resolve_settings(rows: Iterable[SettingRow | Mapping[str, Any]]) -> AppSettings:
    """Overlay recognized setting rows on the defaults.

    Unrecognized keys are ignored. Sub-fields missing from a row keep their
    current value, and a row whose overlay fails validation is skipped whole.
    """
    resolved = DEFAULT_SETTINGS
    for row in rows:
        key, value = _row_key_value(row)
        field_map = SETTING_KEY_FIELDS.get(key or "")
        if field_map is None or not isinstance(value, Mapping):
            continue

        overlay = {field: value[sub_key] for sub_key, field in field_map.items() if value.get(sub_key) is not None}
        if not overlay:
            continue

        try:
            resolved = AppSettings.model_validate({**resolved.model_dump(), **overlay})
        except ValidationError as exc:
            logger.warning("settings.invalid_row", extra={"reason": key, "error": str(exc)})
    return resolved


def settings_to_rows(settings: AppSettings) -> list[SettingRow]:
    values = settings.model_dump()
    return [
        SettingRow(key=key, value={sub_key: values[field] for sub_key, field in field_map.items()})
        for key, field_map in SETTING_KEY_FIELDS.items()
    ]


class SettingsSource(Protocol):
    async def fetch_settings_rows(self) -> list[SettingRow]: ...


class SettingsResolver:
    """Resolves ``AppSettings`` from a row source and caches them for ``ttl_seconds``.

    A failed fetch never raises: it is logged and answered with the defaults,
    and that answer is cached like any other.
    """

    def __init__(
        self,
        source: SettingsSource,
        *,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._cached: AppSettings | None = None
        self._fetched_at: float | None = None

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def _is_fresh(self) -> bool:
        if self._cached is None or self._fetched_at is None:
            return False
        return (self._clock() - self._fetched_at) < self._ttl_seconds

    async def get(self) -> AppSettings:
        if self._cached is not None and self._is_fresh():
            return self._cached

        try:
            rows = await self._source.fetch_settings_rows()
        except Exception as exc:
            logger.error("settings.fetch_failed", extra={"error": str(exc)[:500]})
            observe_settings_fetch_failure("backend")
            resolved = DEFAULT_SETTINGS
        else:
            resolved = resolve_settings(rows)

        self._cached = resolved
        self._fetched_at = self._clock()
        return resolved

    def invalidate(self) -> None:
        self._cached = None
        self._fetched_at = None
