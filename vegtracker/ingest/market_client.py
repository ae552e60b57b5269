"""Client for the upstream day-wise vegetable market price API.

One GET per (city, day). Upstream problems never propagate: they are
reported through the FetchOutcome status so callers can keep going.
"""

import logging
import time
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import httpx

from vegtracker import metrics
from vegtracker.config import settings
from vegtracker.ingest.base import BaseFetcher, FetchOutcome, FetchStatus, PriceRecord

logger = logging.getLogger(__name__)


class UpstreamUnavailableError(RuntimeError):
    """Raised when the upstream API cannot be reached or answers badly."""
    pass


def parse_price_range(value: Any) -> tuple[Optional[str], Optional[str]]:
    """
    Split a "min-max" price string into its two sides.

    Examples:
        "20-35"   -> ("20", "35")
        "20 - 35" -> ("20", "35")
        "20"      -> (None, None)
        None      -> (None, None)
    """
    if not isinstance(value, str) or "-" not in value:
        return None, None

    parts = [part.strip() for part in value.split("-")]
    low, high = parts[0], parts[1]
    if not low or not high:
        return None, None
    return low, high


def parse_wholesale_price(value: Any) -> Optional[int]:
    """Coerce the upstream wholesale price to an int (falsy -> None)."""
    if not value or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        logger.debug(f"Unparseable wholesale price: {value!r}")
        return None
    if not amount.is_finite():
        return None
    return int(amount.to_integral_value(rounding=ROUND_HALF_UP))


def resolve_image_url(item: Dict[str, Any], origin: str) -> Optional[str]:
    """Resolve the record's relative image path against the site origin."""
    table = item.get("table")
    image_path = None
    if isinstance(table, dict):
        image_path = table.get("imageUrl")
    if not image_path:
        image_path = item.get("imageUrl")
    if not image_path or not isinstance(image_path, str):
        return None
    return urljoin(origin, image_path)


def parse_record(
    item: Any,
    city: str,
    day: date,
    origin: str,
) -> Optional[PriceRecord]:
    """
    Parse one raw upstream item.

    Returns:
        PriceRecord, or None if the item is not usable
    """
    if not isinstance(item, dict):
        return None

    vegetable = item.get("vegetablename")
    if not vegetable or not isinstance(vegetable, str):
        return None

    retail_min, retail_max = parse_price_range(item.get("retailprice"))
    shopmall_min, shopmall_max = parse_price_range(item.get("shopingmallprice"))
    unit = item.get("units")

    return PriceRecord(
        date=day,
        city=city,
        vegetable=vegetable.strip(),
        wholesale_price=parse_wholesale_price(item.get("price")),
        retail_min_price=retail_min,
        retail_max_price=retail_max,
        shopmall_min_price=shopmall_min,
        shopmall_max_price=shopmall_max,
        unit=str(unit) if unit else None,
        image=resolve_image_url(item, origin),
    )


class MarketPriceClient(BaseFetcher):
    """
    Fetches day-wise vegetable prices from the upstream market API.

    Features:
    - One request per (city, day), no retries
    - Browser-like user agent
    - Tolerant parsing of missing/malformed fields
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        site_origin: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize market client.

        Args:
            base_url: API base URL (defaults to settings)
            site_origin: Origin used to absolutize image paths
            user_agent: User-Agent header value
            timeout: Request timeout in seconds (None = httpx default)
            http_client: Pre-built client, mainly for tests
        """
        self.base_url = (base_url or settings.market_api_base_url).rstrip("/")
        self.site_origin = site_origin or settings.market_site_origin
        self.user_agent = user_agent or settings.market_user_agent
        self.timeout = timeout if timeout is not None else settings.market_request_timeout
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            kwargs: Dict[str, Any] = {"follow_redirects": True}
            if self.timeout is not None:
                kwargs["timeout"] = self.timeout
            self._http_client = httpx.AsyncClient(**kwargs)
        return self._http_client

    async def close(self):
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def day_url(self, city: str) -> str:
        """URL of the day-wise endpoint for a city."""
        return f"{self.base_url}/market/{city}/daywisedata"

    async def _request(self, city: str, day: date) -> Any:
        client = await self._get_client()
        try:
            response = await client.get(
                self.day_url(city),
                params={"date": day.isoformat()},
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailableError(
                f"HTTP {e.response.status_code} for {city} on {day}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(
                f"{type(e).__name__} for {city} on {day}: {e}"
            ) from e
        except ValueError as e:
            raise UpstreamUnavailableError(f"Invalid JSON for {city} on {day}") from e

    async def fetch(self, city: str, day: date) -> FetchOutcome:
        """
        Fetch all vegetable prices for a city on a day.

        Args:
            city: Upstream market identifier (e.g. "kerala")
            day: Calendar day

        Returns:
            FetchOutcome with status ok, empty or error
        """
        start = time.monotonic()
        try:
            payload = await self._request(city, day)
        except UpstreamUnavailableError as e:
            metrics.record_fetch(city, FetchStatus.ERROR.value, time.monotonic() - start)
            logger.warning(f"Market fetch failed: {e}")
            return FetchOutcome(city=city, day=day, status=FetchStatus.ERROR, error=str(e))

        items = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(items, list) or not items:
            metrics.record_fetch(city, FetchStatus.EMPTY.value, time.monotonic() - start)
            logger.info(f"No market data for {city} on {day}")
            return FetchOutcome(city=city, day=day, status=FetchStatus.EMPTY)

        records = []
        for item in items:
            record = parse_record(item, city, day, self.site_origin)
            if record is None:
                logger.debug(f"Skipping unusable item for {city} on {day}: {item!r}")
                continue
            records.append(record)

        status = FetchStatus.OK if records else FetchStatus.EMPTY
        metrics.record_fetch(city, status.value, time.monotonic() - start)
        return FetchOutcome(city=city, day=day, status=status, records=records)


# Global client shared by the API and scheduled jobs
market_client = MarketPriceClient()
