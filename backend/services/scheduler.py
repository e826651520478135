"""Background scheduler for the daily statistics roll-up.

Optional: the cron endpoint is the primary trigger. Set
STATS_SCHEDULER_ENABLED=true to run the same batch in-process with APScheduler
when no external cron is available.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from config import get_settings
from services.stats_rollup import get_rollup_engine

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


async def generate_scheduled_stats():
    """Background task rolling up every channel for the configured periods."""
    settings = get_settings()
    logger.info("Starting scheduled statistics roll-up...")
    try:
        results = await get_rollup_engine().roll_up_periods(settings.stats_cron_periods)
    except Exception as e:
        logger.error(f"Scheduled statistics roll-up failed: {e}")
        return

    for result in results:
        logger.info(
            f"Scheduled {result.period.value} roll-up: "
            f"{len(result.snapshots)} snapshots, {len(result.failures)} failures"
        )


def start_scheduler():
    """Start the background scheduler if enabled."""
    settings = get_settings()
    if not settings.stats_scheduler_enabled:
        print("✓ Stats scheduler disabled (use /api/cron/generate-stats)")
        return

    if scheduler.running:
        print("✓ Scheduler already running")
        return

    scheduler.add_job(
        generate_scheduled_stats,
        trigger=CronTrigger(hour=settings.stats_schedule_hour, minute=0, timezone="UTC"),
        id="stats_rollup",
        name="Roll up channel statistics",
        replace_existing=True,
    )

    scheduler.start()
    print(f"✓ Background scheduler started (stats roll-up daily at {settings.stats_schedule_hour:02d}:00 UTC)")


def stop_scheduler():
    """Stop the background scheduler."""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Background scheduler stopped")
