"""
Background scheduler for the popularity scan.

The per-like check is the primary trigger; this interval job is the
recovery path for alerts that were dropped (delivery failures, crashes
between commit and dispatch). Uses APScheduler inside the API process,
so no broker is needed.
"""

from typing import List

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import get_settings
from app.core.database import AsyncSessionLocal
from app.core.dependencies import build_popularity_watcher
from app.core.logging import get_logger
from app.services.popularity_watcher import ScanOutcome
from app.services.mailer import get_mailer

logger = get_logger(__name__)

scheduler = AsyncIOScheduler()


async def run_popularity_scan(dry_run: bool = False) -> List[ScanOutcome]:
    """Run one scan with a dedicated database session."""
    async with AsyncSessionLocal() as session:
        watcher = build_popularity_watcher(session, get_mailer())
        return await watcher.scan(dry_run=dry_run)


async def _scheduled_scan() -> None:
    try:
        await run_popularity_scan()
    except Exception as e:
        # Keep the job scheduled; the next run retries.
        logger.error("Scheduled popularity scan failed", error=str(e), exc_info=True)


def start_scheduler() -> bool:
    """
    Register the scan job and start the scheduler when enabled.

    Returns:
        True if the scheduler was started
    """
    settings = get_settings()
    if not settings.POPULARITY_SCAN_ENABLED:
        logger.info("Popularity scan scheduler disabled")
        return False

    scheduler.add_job(
        func=_scheduled_scan,
        trigger=IntervalTrigger(minutes=settings.POPULARITY_SCAN_INTERVAL_MINUTES),
        id="popularity_scan",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()

    logger.info(
        "Popularity scan scheduler started",
        interval_minutes=settings.POPULARITY_SCAN_INTERVAL_MINUTES
    )
    return True


def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Popularity scan scheduler stopped")
