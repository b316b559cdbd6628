from __future__ import annotations

import asyncio
import logging
import signal

from fieldsales.agent.runner import build_agent
from fieldsales.core.config import get_settings
from fieldsales.logging import configure_logging
from fieldsales.otel import setup_otel, shutdown_otel


logger = logging.getLogger("fieldsales.agent")


async def main() -> None:
    settings = get_settings()
    agent = build_agent(settings)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop_event.set)
        except NotImplementedError:
            # Windows event loop; Ctrl+C still raises KeyboardInterrupt
            logger.debug("agent.signal_handler_unavailable", extra={"reason": signal.Signals(signum).name})

    await agent.run_until(stop_event)


if __name__ == "__main__":
    configure_logging()
    setup_otel("fieldsales-agent", get_settings().otel_enabled)
    try:
        asyncio.run(main())
    finally:
        shutdown_otel()
