"""APScheduler integration for periodic pod triage.

Uses AsyncIOScheduler with CronTrigger to run triage on a configurable
schedule.  No-ops gracefully if no cron expression is configured.
"""

import contextlib
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore[import-untyped]
from apscheduler.triggers.cron import CronTrigger  # type: ignore[import-untyped]

from podtriage.config import get_settings
from podtriage.report.generator import run_triage

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


async def _scheduled_triage_job() -> None:
    """Async job executed by the scheduler. A failed run is logged, never raised."""
    try:
        report = await run_triage("scheduled")
        logger.info("Scheduled triage finished: %d problematic pod(s)", report.problematic_count)
    except Exception:
        logger.exception("Scheduled triage run failed")


def start_scheduler() -> bool:
    """Start the APScheduler if a cron expression is configured.

    Returns:
        True if the scheduler was started.
    """
    global _scheduler  # noqa: PLW0603

    settings = get_settings()
    if not settings.triage_schedule_cron:
        logger.info("Triage scheduler disabled (TRIAGE_SCHEDULE_CRON not set)")
        return False

    trigger = CronTrigger.from_crontab(settings.triage_schedule_cron)
    _scheduler = AsyncIOScheduler()
    _scheduler.add_job(
        _scheduled_triage_job,
        trigger=trigger,
        id="pod_triage",
        name="Pod Health Triage",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    _scheduler.start()
    logger.info("Triage scheduler started with cron: %s", settings.triage_schedule_cron)
    return True


def stop_scheduler() -> None:
    """Shut down the scheduler, if one was started. Safe to call repeatedly."""
    global _scheduler  # noqa: PLW0603

    scheduler, _scheduler = _scheduler, None
    if scheduler is None:
        return
    # Raises SchedulerNotRunningError if the event loop already stopped it
    with contextlib.suppress(Exception):
        scheduler.shutdown(wait=False)
    logger.info("Triage scheduler stopped")
