"""AdPulse — Scheduler Jobs.

APScheduler daily job that syncs every active data source at the
configured hour.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from adpulse.config import settings
from adpulse.database import get_session
from adpulse.models.normalized_models import BatchSyncSummary
from adpulse.sync.orchestrator import SyncMode, sync_all_sources
from adpulse.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def daily_sync_job():
    """Sync all active sources using the configured sync mode."""
    logger.info("Scheduled daily sync starting...")
    sessions = get_session()
    try:
        session = next(sessions)
        results = await sync_all_sources(session, SyncMode(settings.default_sync_mode))
        summary = BatchSyncSummary.from_results(results)
        logger.info(
            f"Scheduled sync complete: {summary.succeeded} successful, {summary.failed} failed"
        )
    except Exception as e:
        logger.error(f"Scheduled sync failed: {e}")
    finally:
        sessions.close()


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        daily_sync_job,
        "cron",
        hour=settings.sync_hour,
        minute=0,
        id="daily_sync",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.start()
    logger.info(f"Scheduler started. Daily sync at {settings.sync_hour}:00 UTC")


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
