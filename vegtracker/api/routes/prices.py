"""Stored price routes."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from vegtracker.api.deps import get_database
from vegtracker.db.price_store import PriceStore, StoreError

router = APIRouter(prefix="/api/prices", tags=["prices"])


@router.get("")
async def list_prices(db: AsyncSession = Depends(get_database)):
    """List every stored price observation."""
    try:
        observations = await PriceStore(db).list_all()
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "data": [observation.to_dict() for observation in observations],
        "totalRecords": len(observations),
    }
