# app/services/chain_poller.py
"""
Background jobs started from main.py when enabled in settings.

Chain poller: every SYNC_INTERVAL_SECONDS pulls the latest EventCreated and
SeatsReserved notifications and syncs them into the cache. Stands in for a
websocket subscription, so new events show up without a manual sync call.

Optimizer: every OPTIMIZE_INTERVAL_SECONDS runs ANALYZE / VACUUM / REINDEX.
"""

import asyncio

from app.database import Database
from app.services.event_service import EventService
from app.services.sui_client import SuiClient
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Wait after a failed round doubles up to this many seconds
_MAX_BACKOFF = 600


async def run_sync_round(database: Database, chain: SuiClient, limit: int):
    """One poll: recent events, then reservations. Fresh DB session per round."""
    db = database.session()
    try:
        service = EventService(db, chain)
        events = await service.sync_recent_events(limit)
        reservations = await service.sync_seat_reservations(limit)
    finally:
        db.close()
    return events, reservations


async def poll_chain(database: Database, chain: SuiClient, interval: int, limit: int):
    """Loops forever. Chain or DB failures are logged and retried with backoff."""
    delay = interval
    while True:
        try:
            events, reservations = await run_sync_round(database, chain, limit)
            logger.info(
                f"📡 Poll done: {len(events.synced)} events, "
                f"{len(reservations.synced)} new reservations"
            )
            delay = interval  # reset on success
        except asyncio.CancelledError:
            raise
        except Exception as e:
            delay = min(delay * 2, max(_MAX_BACKOFF, interval))
            logger.error(f"❌ Chain poll failed: {e}. Retry in {delay}s", exc_info=True)

        await asyncio.sleep(delay)


async def optimize_periodically(database: Database, interval: int):
    while True:
        await asyncio.sleep(interval)
        try:
            await asyncio.to_thread(database.optimize)
        except Exception as e:
            logger.error(f"Optimization failed: {e}", exc_info=True)


def start_background_jobs(database: Database, chain: SuiClient, settings) -> list:
    """Create the enabled background tasks. Caller cancels them on shutdown."""
    tasks = []
    if settings.SYNC_INTERVAL_SECONDS > 0:
        logger.info(f"🚀 Chain polling every {settings.SYNC_INTERVAL_SECONDS}s")
        tasks.append(asyncio.create_task(
            poll_chain(database, chain, settings.SYNC_INTERVAL_SECONDS, settings.SYNC_BATCH_LIMIT),
            name="chain-poller",
        ))
    if settings.AUTO_OPTIMIZE:
        tasks.append(asyncio.create_task(
            optimize_periodically(database, settings.OPTIMIZE_INTERVAL_SECONDS),
            name="db-optimizer",
        ))
    return tasks
