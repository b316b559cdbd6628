from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from fieldsales.agent.backend import BackendClient
from fieldsales.appsettings.resolver import SettingsResolver
from fieldsales.appsettings.schemas import AppSettings
from fieldsales.core.config import Settings
from fieldsales.tracking.sampler import FixedPositionProvider, PositionProvider, PositionSampler
from fieldsales.tracking.tracker import BatteryReader, LocationTracker, TrackedUser


logger = logging.getLogger("fieldsales.agent")

SETTINGS_JOB_ID = "settings_refresh"


class TrackerAgent:
    """Device-side runtime: keeps settings fresh and drives one ``LocationTracker``."""

    def __init__(
        self,
        *,
        user: TrackedUser,
        backend: BackendClient,
        provider: PositionProvider,
        settings_ttl_seconds: float = 300,
        geolocation_timeout: float = 10.0,
        scheduler: AsyncIOScheduler | None = None,
        clock: Callable[[], datetime] = datetime.now,
        battery: BatteryReader | None = None,
    ) -> None:
        self.user = user
        self.backend = backend
        self.resolver = SettingsResolver(backend, ttl_seconds=settings_ttl_seconds)
        self.sampler = PositionSampler(provider, timeout=geolocation_timeout, maximum_age=0.0)
        self.scheduler = scheduler if scheduler is not None else AsyncIOScheduler()
        self._clock = clock
        self._battery = battery
        self.tracker: LocationTracker | None = None

    async def start(self) -> None:
        settings = await self.resolver.get()
        self.tracker = LocationTracker(
            user=self.user,
            settings=settings,
            sampler=self.sampler,
            writer=self.backend,
            scheduler=self.scheduler,
            clock=self._clock,
            battery=self._battery,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        self.tracker.start()
        self.scheduler.add_job(
            self.refresh_settings,
            trigger=IntervalTrigger(seconds=self.resolver.ttl_seconds),
            id=SETTINGS_JOB_ID,
            name="Settings refresh",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info("agent.started", extra={"user_id": self.user.id, "interval_seconds": settings.location_ping_interval})

    async def refresh_settings(self) -> AppSettings:
        self.resolver.invalidate()
        settings = await self.resolver.get()
        if self.tracker is not None and settings != self.tracker.settings:
            self.tracker.apply_settings(settings)
        return settings

    async def stop(self) -> None:
        if self.tracker is not None:
            self.tracker.stop()
        if self.scheduler.get_job(SETTINGS_JOB_ID) is not None:
            self.scheduler.remove_job(SETTINGS_JOB_ID)
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        await self.backend.aclose()
        logger.info("agent.stopped", extra={"user_id": self.user.id})

    async def run_until(self, stop_event: asyncio.Event) -> None:
        await self.start()
        try:
            await stop_event.wait()
        finally:
            await self.stop()


def build_agent(settings: Settings) -> TrackerAgent:
    if not settings.agent_user_id:
        raise ValueError("AGENT_USER_ID must be set to run the tracker agent")
    if settings.agent_fixed_lat is None or settings.agent_fixed_lng is None:
        raise ValueError("AGENT_FIXED_LAT and AGENT_FIXED_LNG must be set; no other position provider is configured")

    provider = FixedPositionProvider(
        settings.agent_fixed_lat,
        settings.agent_fixed_lng,
        accuracy=settings.agent_fixed_accuracy,
    )
    backend = BackendClient(
        settings.backend_url,
        settings.backend_access_key,
        timeout=settings.backend_timeout_seconds,
    )
    return TrackerAgent(
        user=TrackedUser(id=settings.agent_user_id, role=settings.agent_user_role),
        backend=backend,
        provider=provider,
        settings_ttl_seconds=settings.settings_cache_ttl_seconds,
        geolocation_timeout=settings.geolocation_timeout_seconds,
    )
