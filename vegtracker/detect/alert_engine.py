"""Trailing-average price alert engine."""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vegtracker import metrics
from vegtracker.config import settings
from vegtracker.db.email_queue import EmailQueueStore
from vegtracker.db.price_store import PriceStore, StoreError
from vegtracker.detect.criteria import Criterion
from vegtracker.notify.formatters import render_price_alert

logger = logging.getLogger(__name__)


def alert_subject(vegetable: str, criterion: Criterion) -> str:
    return f"🚨 Price Alert: {vegetable} Increased ({criterion.name})"


class AlertEngine:
    """
    Compares the latest day's prices with trailing averages.

    Every vegetable whose price rose past a criterion's threshold gets one
    rendered alert email in the queue.
    """

    def __init__(self, db: AsyncSession, recipients: str | None = None):
        self.db = db
        self.recipients = recipients or settings.email_recipients
        self.prices = PriceStore(db)
        self.queue = EmailQueueStore(db)

    async def run(self, criterion: Criterion) -> list[int]:
        """
        Evaluate one criterion against the latest stored day.

        Args:
            criterion: Alert rule to evaluate

        Returns:
            Ids of the queued alert emails (empty if nothing matched)
        """
        queued = await self._queue_matches(criterion)
        await self._commit()
        return queued

    async def run_all(self, criteria: Sequence[Criterion]) -> dict[str, list[int]]:
        """
        Evaluate several criteria in order, committing once at the end.

        Returns:
            Mapping of criterion name to the ids it queued (criteria sharing
            a name share one list)
        """
        results: dict[str, list[int]] = {}
        for criterion in criteria:
            ids = await self._queue_matches(criterion)
            results.setdefault(criterion.name, []).extend(ids)
        await self._commit()

        total = sum(len(ids) for ids in results.values())
        logger.info(f"Alert run over {len(results)} criteria queued {total} emails")
        return results

    async def _queue_matches(self, criterion: Criterion) -> list[int]:
        today = await self.prices.latest_date()
        if today is None:
            logger.info("No stored prices, skipping alert evaluation")
            return []

        window_start = today - timedelta(days=criterion.interval_days)
        averages = await self.prices.average_prices(window_start, today)
        todays_prices = await self.prices.prices_on(today)

        queued = []
        for observation in todays_prices:
            if not observation.wholesale_price:
                continue

            average = averages.get(observation.vegetable)
            if average is None:
                continue

            current = Decimal(observation.wholesale_price)
            matched, reason = criterion.check(current, average)
            if not matched:
                continue

            logger.info(f"{observation.vegetable} matched '{criterion.name}': {reason}")
            metrics.record_alert_match(criterion.name)

            html_body = render_price_alert(
                vegetable=observation.vegetable,
                current_price=current,
                reference_price=average,
                is_increase=True,
                label=criterion.label,
            )
            entry = await self.queue.enqueue(
                email_to=self.recipients,
                subject=alert_subject(observation.vegetable, criterion),
                html_body=html_body,
            )
            metrics.record_email_queued("alert")
            queued.append(entry.id)

        logger.debug(
            f"Criterion '{criterion.name}' over {window_start}..{today}: "
            f"{len(queued)} of {len(todays_prices)} vegetables matched"
        )
        return queued

    async def _commit(self):
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("Could not commit queued alert emails") from e
