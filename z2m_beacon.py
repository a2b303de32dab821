#!/usr/bin/env python3
"""zigbee2mqtt beacon."""

import asyncio
import logging
import signal

from config import ConfigError, load_config
from constants import SHUTDOWN_DRAIN_TIMEOUT
from z2m_beacon_app import Z2MBeacon

logger = logging.getLogger(__name__)


async def main():
    """Main entry point."""
    try:
        config = load_config()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        raise

    app = Z2MBeacon(config)
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    async def runner():
        try:
            await app.start()
        except asyncio.CancelledError:
            pass
        finally:
            await app.stop()
            stop_event.set()

    task = loop.create_task(runner())

    def _shutdown():
        if not task.done() and not app.stop_event.is_set():
            logger.info("Shutting down...")
            app.stop_event.set()
            loop.call_later(SHUTDOWN_DRAIN_TIMEOUT, task.cancel)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _shutdown)
        except NotImplementedError:
            pass

    await stop_event.wait()


def run():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(main())


if __name__ == "__main__":
    run()
