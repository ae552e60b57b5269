"""Background jobs: daily scrape, alert evaluation and the price digest."""

import logging

from vegtracker import metrics
from vegtracker.config import settings
from vegtracker.db.session import AsyncSessionLocal
from vegtracker.detect.alert_engine import AlertEngine
from vegtracker.detect.criteria import load_criteria, select_criteria
from vegtracker.detect.weekly_report import WeeklyReportEngine
from vegtracker.ingest.base import BaseFetcher
from vegtracker.ingest.market_client import market_client
from vegtracker.ingest.scraper import ScrapeOrchestrator

logger = logging.getLogger(__name__)


class TaskRunner:
    """
    Runner for scheduled jobs.

    Each job opens its own session; failures are logged and counted so the
    scheduler keeps running.
    """

    def __init__(self, fetcher: BaseFetcher | None = None, session_factory=None):
        self.fetcher = fetcher or market_client
        self.session_factory = session_factory or AsyncSessionLocal

    async def scrape_today(self, city: str | None = None) -> int:
        """Scrape today's prices for a city and return the stored record count."""
        city = city or settings.default_city
        async with self.session_factory() as db:
            result = await ScrapeOrchestrator(db, self.fetcher).scrape_range(city)
        return result.total_records

    async def run_alert_job(self) -> dict[str, list[int]]:
        """Evaluate the configured criteria against the latest prices."""
        criteria = select_criteria(
            load_criteria(settings.alert_criteria_path),
            settings.active_criterion,
        )
        async with self.session_factory() as db:
            return await AlertEngine(db).run_all(criteria)

    async def daily_job(self):
        """Scrape today for the default city, then run the alert job."""
        logger.info("Running daily price job")
        try:
            stored = await self.scrape_today()
            matches = await self.run_alert_job()
        except Exception as e:
            logger.error(f"Daily price job failed: {e}", exc_info=True)
            metrics.record_scheduler_run("daily", success=False)
            return

        queued = sum(len(ids) for ids in matches.values())
        logger.info(f"Daily price job done: {stored} records stored, {queued} alerts queued")
        metrics.record_scheduler_run("daily", success=True)

    async def weekly_report_job(self):
        """Queue the price movement digest."""
        logger.info("Running weekly report job")
        try:
            async with self.session_factory() as db:
                queued = await WeeklyReportEngine(db).run()
        except Exception as e:
            logger.error(f"Weekly report job failed: {e}", exc_info=True)
            metrics.record_scheduler_run("weekly_report", success=False)
            return

        logger.info(f"Weekly report job done: {len(queued)} email(s) queued")
        metrics.record_scheduler_run("weekly_report", success=True)


# Global task runner instance
task_runner = TaskRunner()
