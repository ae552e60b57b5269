"""Date-range scrape orchestration.

Each day in the requested range is fetched from upstream and, unless the
fetch failed, replaces every stored row for that (day, city).
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterator, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from vegtracker import metrics
from vegtracker.db.price_store import PriceStore
from vegtracker.ingest.base import BaseFetcher, FetchStatus, PriceRecord

logger = logging.getLogger(__name__)

DateInput = Union[str, date, None]


class InvalidDateError(ValueError):
    """Raised when a scrape date is not a valid calendar date."""
    pass


def parse_day(value: Union[str, date], field_name: str = "date") -> date:
    """
    Parse a calendar day from a date or an ISO "YYYY-MM-DD" string.

    Raises:
        InvalidDateError: If the value is not a valid calendar date
    """
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidDateError(f"Invalid {field_name} '{value}' (expected YYYY-MM-DD)")


def resolve_range(
    start_date: DateInput = None,
    end_date: DateInput = None,
    single_date: DateInput = None,
    today: Optional[date] = None,
) -> tuple[date, date]:
    """
    Work out the inclusive day range of a scrape request.

    A missing bound falls back to ``single_date``, then to today. A start
    after the end is returned as-is and covers no days.
    """
    today = today or date.today()
    start_value = start_date or single_date or today
    end_value = end_date or single_date or today

    start = parse_day(start_value, "startDate")
    end = parse_day(end_value, "endDate")
    return start, end


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield each day from start to end inclusive, ascending."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


@dataclass
class DayResult:
    """Outcome of scraping one day."""

    day: date
    status: FetchStatus
    records: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "status": self.status.value,
            "records": self.records,
            "error": self.error,
        }


@dataclass
class ScrapeResult:
    """Everything a range scrape produced, owned by the caller."""

    city: str
    start: date
    end: date
    days: list[DayResult] = field(default_factory=list)
    records: list[PriceRecord] = field(default_factory=list)

    @property
    def total_records(self) -> int:
        return sum(day.records for day in self.days)

    @property
    def failed_days(self) -> list[date]:
        return [day.day for day in self.days if day.status == FetchStatus.ERROR]

    def to_dict(self) -> dict:
        """Convert to the scrape trigger's response payload."""
        return {
            "message": "Scraping completed",
            "city": self.city,
            "from": self.start.isoformat(),
            "to": self.end.isoformat(),
            "totalRecords": self.total_records,
            "records": [record.to_dict() for record in self.records],
            "days": [day.to_dict() for day in self.days],
        }


class ScrapeOrchestrator:
    """Scrapes inclusive date ranges into the price store."""

    def __init__(self, db: AsyncSession, fetcher: BaseFetcher):
        self.store = PriceStore(db)
        self.fetcher = fetcher

    async def scrape_day(self, city: str, day: date) -> tuple[DayResult, list[PriceRecord]]:
        """
        Scrape a single day for a city.

        A failed fetch leaves stored rows untouched and counts as zero,
        unlike a delete-before-fetch scrape that would lose the day.
        An empty response still clears the day.

        Raises:
            StoreError: If replacing the day's rows fails
        """
        outcome = await self.fetcher.fetch(city, day)

        if outcome.status == FetchStatus.ERROR:
            logger.warning(
                f"Skipping {city} on {day}: upstream unavailable ({outcome.error})"
            )
            return DayResult(day=day, status=outcome.status, error=outcome.error), []

        inserted = await self.store.replace_day(day, city, outcome.records)
        metrics.record_records_stored(city, inserted)
        return DayResult(day=day, status=outcome.status, records=inserted), outcome.records

    async def scrape_range(
        self,
        city: str,
        start_date: DateInput = None,
        end_date: DateInput = None,
        single_date: DateInput = None,
    ) -> ScrapeResult:
        """
        Scrape every day from start_date to end_date inclusive.

        Args:
            city: Upstream market identifier
            start_date: First day (defaults to ``single_date`` or today)
            end_date: Last day (defaults to ``single_date`` or today)
            single_date: Single day shorthand

        Returns:
            ScrapeResult with per-day outcomes and all scraped records

        Raises:
            InvalidDateError: Before any store access, for bad dates
            StoreError: If the store fails while replacing a day
        """
        start, end = resolve_range(start_date, end_date, single_date)
        result = ScrapeResult(city=city, start=start, end=end)

        logger.info(f"Scraping {city} from {start} to {end}")

        for day in iter_days(start, end):
            day_result, records = await self.scrape_day(city, day)
            result.days.append(day_result)
            result.records.extend(records)

        if result.failed_days:
            logger.warning(
                f"Scrape for {city} finished with {len(result.failed_days)} failed day(s): "
                + ", ".join(d.isoformat() for d in result.failed_days)
            )
        logger.info(
            f"Scrape complete for {city}: {result.total_records} records "
            f"over {len(result.days)} day(s)"
        )
        return result
