"""Price observation storage and aggregate queries."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vegtracker.db.models import PriceObservation
from vegtracker.ingest.base import PriceRecord

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when a storage operation fails."""
    pass


class PriceStore:
    """Reads and writes PriceObservation rows through an async session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def replace_day(
        self,
        day: date,
        city: str,
        records: Sequence[PriceRecord],
    ) -> int:
        """
        Atomically replace all rows for a (day, city).

        Deletes existing rows and inserts the new ones in one transaction,
        so an empty record list clears the day.

        Args:
            day: Calendar day
            city: City key
            records: Parsed records for that day and city

        Returns:
            Number of rows inserted

        Raises:
            StoreError: If the delete or insert fails (transaction rolled back)
        """
        try:
            result = await self.db.execute(
                delete(PriceObservation).where(
                    PriceObservation.date == day,
                    PriceObservation.city == city,
                )
            )
            removed = result.rowcount or 0

            self.db.add_all(self._to_models(records))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to replace prices for {city} on {day}: {e}")
            raise StoreError(f"Could not replace prices for {city} on {day}") from e

        logger.debug(
            f"Replaced {removed} rows with {len(records)} rows for {city} on {day}"
        )
        return len(records)

    async def list_all(self) -> list[PriceObservation]:
        """Return every stored observation (no particular order)."""
        try:
            result = await self.db.execute(select(PriceObservation))
        except SQLAlchemyError as e:
            raise StoreError("Could not list prices") from e
        return list(result.scalars().all())

    async def list_newest_first(self) -> list[PriceObservation]:
        """Return every stored observation ordered by date, newest first."""
        try:
            result = await self.db.execute(
                select(PriceObservation).order_by(
                    PriceObservation.date.desc(), PriceObservation.id.asc()
                )
            )
        except SQLAlchemyError as e:
            raise StoreError("Could not list prices") from e
        return list(result.scalars().all())

    async def latest_date(self) -> Optional[date]:
        """Get the most recent date present in the store."""
        try:
            result = await self.db.execute(select(func.max(PriceObservation.date)))
        except SQLAlchemyError as e:
            raise StoreError("Could not read latest price date") from e
        return result.scalar()

    async def prices_on(self, day: date) -> list[PriceObservation]:
        """Get all observations for a single day, in insertion order."""
        try:
            result = await self.db.execute(
                select(PriceObservation)
                .where(PriceObservation.date == day)
                .order_by(PriceObservation.id.asc())
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Could not read prices for {day}") from e
        return list(result.scalars().all())

    async def average_prices(
        self,
        start: date,
        end: date,
        include_end: bool = False,
    ) -> dict[str, Decimal]:
        """
        Average wholesale price per vegetable over a date span.

        Null and zero prices are excluded.

        Args:
            start: First day of the span (inclusive)
            end: Last day of the span
            include_end: Whether ``end`` itself is part of the span

        Returns:
            Mapping of vegetable name to average rounded to 2 decimals
        """
        end_clause = (
            PriceObservation.date <= end if include_end else PriceObservation.date < end
        )
        query = (
            select(
                PriceObservation.vegetable,
                func.avg(PriceObservation.wholesale_price),
            )
            .where(
                PriceObservation.date >= start,
                end_clause,
                PriceObservation.wholesale_price.is_not(None),
                PriceObservation.wholesale_price > 0,
            )
            .group_by(PriceObservation.vegetable)
        )

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not average prices for {start}..{end}") from e

        averages = {}
        for vegetable, avg_price in result.all():
            if avg_price is not None:
                averages[vegetable] = Decimal(str(round(float(avg_price), 2)))
        return averages

    @staticmethod
    def _to_models(records: Sequence[PriceRecord]) -> list[PriceObservation]:
        return [
            PriceObservation(
                date=record.date,
                city=record.city,
                vegetable=record.vegetable,
                wholesale_price=record.wholesale_price,
                retail_min_price=record.retail_min_price,
                retail_max_price=record.retail_max_price,
                shopmall_min_price=record.shopmall_min_price,
                shopmall_max_price=record.shopmall_max_price,
                unit=record.unit,
                image=record.image,
            )
            for record in records
        ]
