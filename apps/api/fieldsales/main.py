from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from fieldsales.api.routes import router as api_router
from fieldsales.core.config import get_settings
from fieldsales.core.events import InternalEvent, event_bus
from fieldsales.logging import configure_logging
from fieldsales.middleware.correlation_id import CorrelationIdMiddleware
from fieldsales.middleware.rate_limit import TrackingIngestRateLimitMiddleware
from fieldsales.middleware.request_logging import RequestLoggingMiddleware
from fieldsales.otel import get_fastapi_server_request_hook, setup_otel


configure_logging()
logger = logging.getLogger("fieldsales.lifecycle")
_subscriptions_registered = False

_logged_event_types = [
    "system.started",
    "settings.updated",
]


def _on_system_event(event: InternalEvent) -> None:
    logger.info("system_event", extra={"event_name": event.name})


def _warn_on_missing_client_config() -> None:
    settings = get_settings()
    if not settings.maps_api_key:
        logger.warning("config.maps_api_key_missing", extra={"reason": "map features will not load"})


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _subscriptions_registered
    if not _subscriptions_registered:
        for event_name in _logged_event_types:
            event_bus.subscribe(event_name, _on_system_event)
        _subscriptions_registered = True
    _warn_on_missing_client_config()
    event_bus.publish("system.started", {"service": "api"})
    yield


app = FastAPI(title="Field Sales API", version="0.1.0", debug=get_settings().app_debug, lifespan=lifespan)
app.add_middleware(TrackingIngestRateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.include_router(api_router)

settings = get_settings()
if settings.otel_enabled:
    setup_otel("fieldsales-api", True)

if not getattr(app, "_is_instrumented_by_opentelemetry", False):
    FastAPIInstrumentor().instrument_app(app, server_request_hook=get_fastapi_server_request_hook())
