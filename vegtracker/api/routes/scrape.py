"""Scrape trigger routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vegtracker.api.deps import get_database, get_fetcher
from vegtracker.config import settings
from vegtracker.db.price_store import StoreError
from vegtracker.ingest.base import BaseFetcher
from vegtracker.ingest.scraper import InvalidDateError, ScrapeOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scrape", tags=["scrape"])


@router.post("")
async def trigger_scrape(
    city: str | None = Query(None, description="Upstream market key"),
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    single_date: str | None = Query(None, alias="date"),
    db: AsyncSession = Depends(get_database),
    fetcher: BaseFetcher = Depends(get_fetcher),
):
    """
    Scrape a date range for a city and replace the stored days.

    Missing bounds default to ``date`` and then to today.
    """
    orchestrator = ScrapeOrchestrator(db, fetcher)
    try:
        result = await orchestrator.scrape_range(
            city or settings.default_city,
            start_date=start_date,
            end_date=end_date,
            single_date=single_date,
        )
    except InvalidDateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        logger.error(f"Scrape aborted: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return result.to_dict()
