"""APScheduler setup for the sync job sweep."""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import get_settings
from app.core.database import async_session_maker
from app.services.jobs import get_sync_service

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


async def run_job_sweep():
    """Time out idle sync jobs, evict finished ones and drop expired cooldowns."""
    service = get_sync_service()

    async with async_session_maker() as session:
        try:
            counts = await service.expire_stale_jobs(session)
        except Exception as e:
            logger.error(f"Job sweep failed: {e}")
            return

    purged = service.cooldown.purge_expired()
    logger.debug(f"Job sweep finished: {counts}, {purged} cooldowns purged")


def start_scheduler():
    """Start the APScheduler."""
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already started")
        return

    settings = get_settings()
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        run_job_sweep,
        IntervalTrigger(seconds=settings.job_sweep_interval_seconds),
        id="sync_job_sweep",
        name="Expire stale sync jobs",
        replace_existing=True
    )

    scheduler.start()
    logger.info(f"Scheduler started - job sweep every {settings.job_sweep_interval_seconds}s")


def stop_scheduler():
    """Stop the APScheduler."""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown()
        scheduler = None
        logger.info("Scheduler stopped")
