"""
Kindroid Bots - Entry Point
Multi-bot architecture: Runs multiple Discord clients from one process,
each backed by its own Kindroid persona.
"""

import asyncio
import signal
import sys
import logging

# Suppress verbose logging from all libraries
logging.getLogger('discord').setLevel(logging.WARNING)
logging.getLogger('discord.http').setLevel(logging.WARNING)
logging.getLogger('discord.gateway').setLevel(logging.WARNING)
logging.getLogger('aiohttp').setLevel(logging.WARNING)

from config import METRICS_PORT, load_bot_configs
from lifecycle import BotManager
from prometheus_metrics import metrics_manager
from startup import validate_startup
import logger as log


def _install_signal_handlers(stop: asyncio.Event):
    """Stop on SIGINT/SIGTERM where the platform supports loop signal handlers."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Windows: KeyboardInterrupt still ends asyncio.run
            pass


async def run_bots(configs) -> int:
    """Run all configured bots until a signal arrives or every connection ends."""
    if METRICS_PORT:
        metrics_manager.start_metrics_server(METRICS_PORT)

    manager = BotManager()
    try:
        started = await manager.start_all(configs)
        if not started:
            log.error("No bots could be started!")
            return 1

        log.divider()
        stop = asyncio.Event()
        _install_signal_handlers(stop)

        stop_task = asyncio.create_task(stop.wait())
        closed_task = asyncio.create_task(manager.wait_until_disconnected())
        await asyncio.wait({stop_task, closed_task}, return_when=asyncio.FIRST_COMPLETED)
        for task in (stop_task, closed_task):
            task.cancel()
        return 0
    finally:
        await manager.shutdown_all()
        await manager.provider.close()
        log.info("Goodbye!")


# --- Entry Point ---

if __name__ == "__main__":
    bot_configs = load_bot_configs()

    if not validate_startup(bot_configs):
        log.error("Startup validation failed. Please fix the issues above.")
        sys.exit(1)

    log.divider()
    try:
        sys.exit(asyncio.run(run_bots(bot_configs)))
    except KeyboardInterrupt:
        pass
