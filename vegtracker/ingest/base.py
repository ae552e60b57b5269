"""Base fetcher interface and records for market price sources."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class FetchStatus(str, Enum):
    """Outcome of fetching one (city, day) from upstream."""

    OK = "ok"  # Upstream returned at least one record
    EMPTY = "empty"  # Request succeeded, no data for that day
    ERROR = "error"  # Transport/HTTP/decoding failure


@dataclass
class PriceRecord:
    """A parsed vegetable price row ready to be stored."""

    date: date
    city: str
    vegetable: str
    wholesale_price: Optional[int] = None
    retail_min_price: Optional[str] = None
    retail_max_price: Optional[str] = None
    shopmall_min_price: Optional[str] = None
    shopmall_max_price: Optional[str] = None
    unit: Optional[str] = None
    image: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert record to dictionary."""
        return {
            "date": self.date.isoformat(),
            "city": self.city,
            "vegetable": self.vegetable,
            "wholesale_price": self.wholesale_price,
            "retail_min_price": self.retail_min_price,
            "retail_max_price": self.retail_max_price,
            "shopmall_min_price": self.shopmall_min_price,
            "shopmall_max_price": self.shopmall_max_price,
            "unit": self.unit,
            "image": self.image,
        }


@dataclass
class FetchOutcome:
    """Result of one upstream request.

    "No data" and "fetch failed" both carry zero records but differ in status.
    """

    city: str
    day: date
    status: FetchStatus
    records: list[PriceRecord] = field(default_factory=list)
    error: Optional[str] = None


class BaseFetcher(ABC):
    """Abstract base class for daily market price sources."""

    @abstractmethod
    async def fetch(self, city: str, day: date) -> FetchOutcome:
        """
        Fetch every vegetable price published for a city on a day.

        Args:
            city: Upstream city/market identifier
            day: Calendar day to fetch

        Returns:
            FetchOutcome; implementations never raise for upstream failures
        """
        pass

    async def close(self) -> None:
        """Release any held resources."""
        return None
