"""Periodic location sampling for a signed-in sales rep.

One ``LocationTracker`` owns one interval job on an APScheduler
``AsyncIOScheduler``. Starting it fires one sample straight away and then one
per ``location_ping_interval`` seconds. Changing the interval reschedules the
same job without an extra fire. Changing the user restarts tracking as if
freshly started, under a new job id, and a sample still pending for the
previous user is dropped. At most one sample per mount is outstanding.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from apscheduler.events import EVENT_JOB_MAX_INSTANCES, JobSubmissionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from fieldsales.appsettings.schemas import AppSettings
from fieldsales.context import new_correlation_id, reset_correlation_id, set_correlation_id
from fieldsales.metrics import observe_tracking_sample
from fieldsales.otel import get_tracer
from fieldsales.tracking.emitter import SampleWriter, build_sample
from fieldsales.tracking.hours import within_working_hours
from fieldsales.tracking.sampler import GeolocationError, PositionSampler


logger = logging.getLogger("fieldsales.tracking")
tracer = get_tracer("fieldsales.tracking")

PING_JOB_ID = "location_ping"
TRACKED_ROLE = "sales_rep"

OUTCOME_RECORDED = "recorded"
OUTCOME_OUTSIDE_HOURS = "outside_hours"
OUTCOME_INFLIGHT = "inflight"
OUTCOME_GEOLOCATION_FAILED = "geolocation_failed"
OUTCOME_WRITE_FAILED = "write_failed"
OUTCOME_AFTER_TEARDOWN = "after_teardown"
OUTCOME_SUPERSEDED = "superseded"
OUTCOME_INACTIVE = "inactive"
OUTCOME_ERROR = "error"

BatteryReader = Callable[[], Awaitable[float | None]]


@dataclass(frozen=True, slots=True)
class TrackedUser:
    id: str
    role: str


def should_track(user: TrackedUser | None) -> bool:
    return user is not None and bool(user.id) and user.role == TRACKED_ROLE


class LocationTracker:
    def __init__(
        self,
        *,
        user: TrackedUser | None,
        settings: AppSettings,
        sampler: PositionSampler,
        writer: SampleWriter,
        scheduler: AsyncIOScheduler | None = None,
        clock: Callable[[], datetime] = datetime.now,
        battery: BatteryReader | None = None,
    ) -> None:
        self._user = user
        self._settings = settings
        self._sampler = sampler
        self._writer = writer
        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler if scheduler is not None else AsyncIOScheduler()
        self._clock = clock
        self._battery = battery
        self._active = False
        self._closed = False
        self._inflight = False
        # bumped whenever the timer is cancelled; a cycle started under an older
        # generation never writes and never blocks the newer mount
        self._generation = 0
        self._scheduler.add_listener(self._on_job_skipped, EVENT_JOB_MAX_INSTANCES)

    @property
    def user(self) -> TrackedUser | None:
        return self._user

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def scheduler(self) -> AsyncIOScheduler:
        return self._scheduler

    @property
    def is_tracking(self) -> bool:
        return self._active

    @property
    def in_flight(self) -> bool:
        return self._inflight

    @property
    def ping_job_id(self) -> str:
        return f"{PING_JOB_ID}:{self._generation}"

    def start(self) -> None:
        if self._closed:
            raise RuntimeError("tracker has been stopped")
        if self._active:
            return
        if not should_track(self._user):
            logger.info(
                "tracking.disabled",
                extra={"user_id": getattr(self._user, "id", None), "reason": "not_a_sales_rep"},
            )
            return
        if not self._scheduler.running:
            self._scheduler.start()
        self._schedule(immediate=True)

    def apply_settings(self, settings: AppSettings) -> None:
        previous = self._settings
        self._settings = settings
        if not self._active or previous.location_ping_interval == settings.location_ping_interval:
            return

        self._scheduler.reschedule_job(
            self.ping_job_id,
            trigger=IntervalTrigger(seconds=settings.location_ping_interval),
        )
        logger.info(
            "tracking.rescheduled",
            extra={"user_id": self._user.id if self._user else None, "interval_seconds": settings.location_ping_interval},
        )

    def apply_user(self, user: TrackedUser | None) -> None:
        if user == self._user:
            return
        self._cancel_timer()
        self._user = user
        if self._closed:
            return
        if should_track(user):
            if not self._scheduler.running:
                self._scheduler.start()
            self._schedule(immediate=True)
        else:
            logger.info("tracking.disabled", extra={"user_id": getattr(user, "id", None), "reason": "user_changed"})

    def stop(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cancel_timer()
        self._scheduler.remove_listener(self._on_job_skipped)
        if self._owns_scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        logger.info("tracking.stopped", extra={"user_id": self._user.id if self._user else None})

    async def tick(self) -> str:
        if self._closed or not self._active:
            return OUTCOME_INACTIVE
        if self._inflight:
            logger.warning("tracking.tick_skipped_inflight", extra={"user_id": self._user.id if self._user else None})
            observe_tracking_sample(OUTCOME_INFLIGHT)
            return OUTCOME_INFLIGHT

        generation = self._generation
        user = self._user
        self._inflight = True
        token = set_correlation_id(new_correlation_id())
        try:
            with tracer.start_as_current_span("tracking.sample") as span:
                try:
                    outcome = await self._run_cycle(generation)
                except Exception as exc:
                    logger.exception("tracking.cycle_failed", extra={"error": str(exc)[:500]})
                    outcome = OUTCOME_ERROR
                span.set_attribute("outcome", outcome)
                if user is not None:
                    span.set_attribute("user_id", user.id)
        finally:
            if generation == self._generation:
                self._inflight = False
            reset_correlation_id(token)

        observe_tracking_sample(outcome)
        return outcome

    async def _run_cycle(self, generation: int) -> str:
        user = self._user
        settings = self._settings
        if user is None:
            return OUTCOME_INACTIVE

        if not within_working_hours(self._clock(), settings.working_hours_start, settings.working_hours_end):
            logger.info("tracking.outside_working_hours", extra={"user_id": user.id})
            return OUTCOME_OUTSIDE_HOURS

        try:
            fix = await self._sampler.sample()
        except GeolocationError as exc:
            logger.warning("tracking.geolocation_failed", extra={"user_id": user.id, "error": str(exc)})
            return OUTCOME_GEOLOCATION_FAILED

        sample = build_sample(user.id, fix, await self._read_battery())
        if self._closed:
            logger.info("tracking.sample_dropped", extra={"user_id": user.id, "reason": "stopped"})
            return OUTCOME_AFTER_TEARDOWN
        if generation != self._generation:
            logger.info("tracking.sample_dropped", extra={"user_id": user.id, "reason": "user_changed"})
            return OUTCOME_SUPERSEDED

        try:
            await self._writer.insert_location_ping(sample)
        except Exception as exc:
            logger.error("tracking.write_failed", extra={"user_id": user.id, "error": str(exc)[:500]})
            return OUTCOME_WRITE_FAILED

        logger.info("tracking.sample_recorded", extra={"user_id": user.id, "outcome": sample.activity_type})
        return OUTCOME_RECORDED

    async def _read_battery(self) -> float | None:
        if self._battery is None:
            return None
        try:
            return await self._battery()
        except Exception as exc:
            logger.debug("tracking.battery_unavailable", extra={"error": str(exc)})
            return None

    def _schedule(self, *, immediate: bool) -> None:
        interval = self._settings.location_ping_interval
        job_kwargs = {}
        if immediate:
            job_kwargs["next_run_time"] = datetime.now(timezone.utc)
        self._scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=interval),
            id=self.ping_job_id,
            name="Location ping",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_kwargs,
        )
        self._active = True
        logger.info(
            "tracking.started",
            extra={"user_id": self._user.id if self._user else None, "interval_seconds": interval},
        )

    def _cancel_timer(self) -> None:
        if self._active and self._scheduler.get_job(self.ping_job_id) is not None:
            self._scheduler.remove_job(self.ping_job_id)
        self._active = False
        self._inflight = False
        self._generation += 1

    def _on_job_skipped(self, event: JobSubmissionEvent) -> None:
        if event.job_id != self.ping_job_id:
            return
        logger.warning("tracking.tick_skipped_inflight", extra={"user_id": self._user.id if self._user else None})
        observe_tracking_sample(OUTCOME_INFLIGHT)
