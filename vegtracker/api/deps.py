"""FastAPI dependencies."""

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from vegtracker.config import settings
from vegtracker.db.session import get_db
from vegtracker.detect.criteria import (
    CriteriaConfigError,
    Criterion,
    load_criteria,
    select_criteria,
)
from vegtracker.ingest.base import BaseFetcher
from vegtracker.ingest.market_client import market_client


async def get_database() -> AsyncSession:
    """Dependency for database session."""
    async for session in get_db():
        yield session
        break  # Only yield once, as FastAPI handles the session lifecycle


def get_fetcher() -> BaseFetcher:
    """Dependency for the upstream price source."""
    return market_client


def get_criteria() -> list[Criterion]:
    """
    Dependency for the criteria an alert run evaluates.

    Raises:
        HTTPException: 500 if the criteria file is missing or invalid
    """
    try:
        criteria = load_criteria(settings.alert_criteria_path)
        return select_criteria(criteria, settings.active_criterion)
    except CriteriaConfigError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
