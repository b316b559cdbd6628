from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fieldsales.context import get_correlation_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class InternalEvent:
    name: str
    payload: dict[str, Any]
    correlation_id: str | None = None
    occurred_at: datetime = field(default_factory=_utcnow)


EventHandler = Callable[[InternalEvent], None]


class InProcessEventBus:
    """Synchronous fan-out to handlers registered per event name.

    Handlers run in the publisher's context, in subscription order. A handler
    that raises stops delivery and the error reaches the publisher.
    """

    def __init__(self) -> None:
        self._handlers: defaultdict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        if handler not in self._handlers[event_name]:
            self._handlers[event_name].append(handler)

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_name)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def publish(self, event_name: str, payload: dict[str, Any]) -> InternalEvent:
        event = InternalEvent(name=event_name, payload=payload, correlation_id=get_correlation_id())
        for handler in tuple(self._handlers.get(event_name, ())):
            handler(event)
        return event


event_bus = InProcessEventBus()
