"""Shared fixtures: temporary database and a scripted upstream fetcher."""

from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from vegtracker.db.models import Base
from vegtracker.db.price_store import PriceStore
from vegtracker.ingest.base import BaseFetcher, FetchOutcome, FetchStatus, PriceRecord


class FakeFetcher(BaseFetcher):
    """Serves canned prices per day and remembers which days were asked for."""

    def __init__(self, prices_by_day=None, failing_days=()):
        self.prices_by_day = prices_by_day or {}
        self.failing_days = set(failing_days)
        self.calls: list[date] = []

    async def fetch(self, city: str, day: date) -> FetchOutcome:
        self.calls.append(day)
        if day in self.failing_days:
            return FetchOutcome(
                city=city, day=day, status=FetchStatus.ERROR, error="upstream down"
            )

        records = [
            PriceRecord(date=day, city=city, vegetable=name, wholesale_price=price)
            for name, price in self.prices_by_day.get(day, {}).items()
        ]
        status = FetchStatus.OK if records else FetchStatus.EMPTY
        return FetchOutcome(city=city, day=day, status=status, records=records)


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


@pytest.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed_prices(db_session):
    """Store {vegetable: price} for a day, replacing what was there."""

    async def _seed(day: date, prices: dict, city: str = "kerala", image=None):
        records = [
            PriceRecord(
                date=day,
                city=city,
                vegetable=name,
                wholesale_price=price,
                image=image,
            )
            for name, price in prices.items()
        ]
        await PriceStore(db_session).replace_day(day, city, records)

    return _seed
