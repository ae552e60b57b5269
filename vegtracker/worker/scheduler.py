"""APScheduler job definitions."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from vegtracker.config import settings
from vegtracker.worker.tasks import TaskRunner, task_runner

logger = logging.getLogger(__name__)


def setup_scheduler(runner: TaskRunner | None = None) -> AsyncIOScheduler:
    """
    Setup and configure APScheduler.

    Scheduling overview:
    - Daily scrape of today for settings.default_city, followed by alerts
    - Price digest once a week on settings.weekly_report_day_of_week

    Returns:
        Configured scheduler instance
    """
    runner = runner or task_runner
    scheduler = AsyncIOScheduler(timezone=settings.timezone)

    scheduler.add_job(
        runner.daily_job,
        CronTrigger(
            hour=settings.daily_scrape_hour,
            minute=settings.daily_scrape_minute,
            timezone=settings.timezone,
        ),
        id="daily_scrape",
        name="Scrape today's prices and evaluate alerts",
        max_instances=1,  # Prevent overlapping runs
        coalesce=True,
        misfire_grace_time=600,
        replace_existing=True,
    )

    scheduler.add_job(
        runner.weekly_report_job,
        CronTrigger(
            day_of_week=settings.weekly_report_day_of_week,
            hour=settings.weekly_report_hour,
            minute=0,
            timezone=settings.timezone,
        ),
        id="weekly_report",
        name="Queue the weekly price digest",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )

    logger.info(
        "Scheduler configured: daily scrape at %02d:%02d, weekly report on %s at %02d:00 (%s)",
        settings.daily_scrape_hour,
        settings.daily_scrape_minute,
        settings.weekly_report_day_of_week,
        settings.weekly_report_hour,
        settings.timezone,
    )

    return scheduler
