import asyncio
import logging

from .newhire_cleanup import NewHireCleanup

logger = logging.getLogger(__name__)

SWEEP_INTERVAL = 5  # seconds


async def run_new_hire_cleanup(
    cleanup: NewHireCleanup,
    stop_event: asyncio.Event,
    interval: float = SWEEP_INTERVAL,
):
    """Background loop that sweeps expired new hires every few seconds until stop_event is set"""

    while not stop_event.is_set():
        try:
            await cleanup.run_once()
        except asyncio.CancelledError:
            break
        except Exception as e:
            # Don't crash the whole process, but do surface the error.
            logger.exception("run_new_hire_cleanup: sweep failed: %s", e)

        logger.info("Resume after %s seconds...", interval)
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            continue
        except asyncio.CancelledError:
            break

    logger.info("New hire cleanup loop stopped")
