"""Email queue routes: alert and report jobs plus dispatcher access."""

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from vegtracker.api.deps import get_criteria, get_database
from vegtracker.db.email_queue import EmailQueueStore
from vegtracker.db.price_store import StoreError
from vegtracker.detect.alert_engine import AlertEngine
from vegtracker.detect.criteria import Criterion
from vegtracker.detect.weekly_report import WeeklyReportEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/emails", tags=["emails"])


class EmailResponse(BaseModel):
    id: int
    email_to: str
    subject: str
    email_cc: str | None
    attachment_path: str | None
    is_sent: bool
    created_at: datetime
    sent_on: datetime | None

    class Config:
        from_attributes = True


@router.post("/alerts")
async def run_alerts(
    criteria: list[Criterion] = Depends(get_criteria),
    db: AsyncSession = Depends(get_database),
):
    """Evaluate alert criteria against the latest prices and queue matches."""
    try:
        matches = await AlertEngine(db).run_all(criteria)
    except StoreError as e:
        logger.error(f"Alert run failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    queued = [entry_id for ids in matches.values() for entry_id in ids]
    return {
        "success": True,
        "data": queued,
        "matches": matches,
        "message": f"{len(queued)} alert email(s) queued",
    }


@router.post("/weekly-report")
async def run_weekly_report(db: AsyncSession = Depends(get_database)):
    """Queue the price movement digest if any price changed."""
    try:
        queued = await WeeklyReportEngine(db).run()
    except StoreError as e:
        logger.error(f"Weekly report failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "success": True,
        "data": queued,
        "message": "Report queued" if queued else "Nothing to report",
    }


@router.get("", response_model=List[EmailResponse])
async def list_emails(
    pending: bool = False,
    limit: int = 100,
    db: AsyncSession = Depends(get_database),
):
    """List queued emails, newest first."""
    try:
        return await EmailQueueStore(db).list_entries(pending_only=pending, limit=limit)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{entry_id}/view", response_class=HTMLResponse)
async def view_email(entry_id: int, db: AsyncSession = Depends(get_database)):
    """Return the rendered HTML body of a queued email."""
    try:
        entry = await EmailQueueStore(db).get(entry_id)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if not entry:
        raise HTTPException(status_code=404, detail="Email not found")

    return HTMLResponse(content=entry.html_body)


@router.post("/{entry_id}/sent", response_model=EmailResponse)
async def mark_email_sent(entry_id: int, db: AsyncSession = Depends(get_database)):
    """Mark a queued email as delivered by the dispatcher."""
    try:
        entry = await EmailQueueStore(db).mark_sent(entry_id)
    except StoreError as e:
        logger.error(f"Could not mark email {entry_id} as sent: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    if not entry:
        raise HTTPException(status_code=404, detail="Email not found")

    return entry
