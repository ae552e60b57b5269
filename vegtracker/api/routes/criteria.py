"""Alert criteria routes."""

from fastapi import APIRouter, Depends

from vegtracker.api.deps import get_criteria
from vegtracker.detect.criteria import Criterion

router = APIRouter(prefix="/api/criteria", tags=["criteria"])


@router.get("")
async def list_criteria(criteria: list[Criterion] = Depends(get_criteria)):
    """List the criteria the next alert run will evaluate."""
    return [criterion.to_dict() for criterion in criteria]
