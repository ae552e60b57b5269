"""Periodic digest of vegetables whose price moved."""

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vegtracker import metrics
from vegtracker.config import settings
from vegtracker.db.email_queue import EmailQueueStore
from vegtracker.db.price_store import PriceStore, StoreError
from vegtracker.notify.formatters import render_weekly_report

logger = logging.getLogger(__name__)

REPORT_SUBJECT = "Vegetable Prices Update"


@dataclass
class ComparisonItem:
    """A vegetable priced differently today than on the comparison day."""

    name: str
    price: Decimal
    prev_price: Decimal
    avg_price: Decimal
    image: Optional[str] = None

    @property
    def change_ratio(self) -> Decimal:
        """Size of the change relative to the comparison price."""
        return abs(self.price - self.prev_price) / self.prev_price

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "price": float(self.price),
            "prev_price": float(self.prev_price),
            "avg_price": float(self.avg_price),
            "image": self.image,
        }


class WeeklyReportEngine:
    """Builds and queues the price movement digest."""

    def __init__(
        self,
        db: AsyncSession,
        comparison_days: int | None = None,
        recipients: str | None = None,
    ):
        self.db = db
        self.comparison_days = (
            settings.report_comparison_days if comparison_days is None else comparison_days
        )
        self.recipients = recipients or settings.email_recipients
        self.prices = PriceStore(db)
        self.queue = EmailQueueStore(db)

    async def collect(self) -> list[ComparisonItem]:
        """
        Compare the latest day's prices with the comparison day.

        Returns:
            Vegetables whose price changed, largest relative move first
        """
        today = await self.prices.latest_date()
        if today is None:
            return []

        comparison_date = today - timedelta(days=self.comparison_days)

        previous: dict[str, Decimal] = {}
        for observation in await self.prices.prices_on(comparison_date):
            if observation.wholesale_price:
                previous[observation.vegetable] = Decimal(observation.wholesale_price)

        averages = await self.prices.average_prices(
            comparison_date, today, include_end=True
        )

        items = []
        for observation in await self.prices.prices_on(today):
            if not observation.wholesale_price:
                continue

            prev_price = previous.get(observation.vegetable)
            price = Decimal(observation.wholesale_price)
            if prev_price is None or price == prev_price:
                continue

            items.append(
                ComparisonItem(
                    name=observation.vegetable,
                    price=price,
                    prev_price=prev_price,
                    avg_price=averages.get(observation.vegetable, price),
                    image=observation.image,
                )
            )

        items.sort(key=lambda item: item.change_ratio, reverse=True)
        return items

    async def run(self) -> list[int]:
        """
        Queue one digest email covering every changed vegetable.

        Returns:
            The queued email id in a list, or an empty list if nothing changed
        """
        items = await self.collect()
        if not items:
            logger.info("Nothing to report: no vegetable price changed")
            return []

        today = await self.prices.latest_date()
        comparison_date = today - timedelta(days=self.comparison_days)

        html_body = render_weekly_report(comparison_date, today, items)
        entry = await self.queue.enqueue(
            email_to=self.recipients,
            subject=REPORT_SUBJECT,
            html_body=html_body,
        )
        entry_id = entry.id

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("Could not commit queued report email") from e

        metrics.record_email_queued("weekly_report")
        logger.info(
            f"Queued price report {entry_id} with {len(items)} vegetables "
            f"({comparison_date} to {today})"
        )
        return [entry_id]
