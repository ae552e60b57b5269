"""Durable outbound email queue."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vegtracker.db.models import EmailQueueEntry
from vegtracker.db.price_store import StoreError

logger = logging.getLogger(__name__)


class EmailQueueStore:
    """
    Append-only producer side of the email queue.

    Rows are rendered here and left for an external dispatcher, which
    reports delivery through ``mark_sent``.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def enqueue(
        self,
        email_to: str,
        subject: str,
        html_body: str,
        email_cc: Optional[str] = None,
        attachment_path: Optional[str] = None,
    ) -> EmailQueueEntry:
        """
        Append an email to the queue.

        The row is flushed so its id is assigned; committing is left to
        the caller so a job's entries land together.

        Returns:
            The new EmailQueueEntry with its id populated
        """
        entry = EmailQueueEntry(
            email_to=email_to,
            subject=subject,
            html_body=html_body,
            email_cc=email_cc,
            attachment_path=attachment_path,
            is_sent=False,
        )
        self.db.add(entry)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError(f"Could not queue email '{subject}'") from e

        logger.debug(f"Queued email {entry.id}: {subject}")
        return entry

    async def get(self, entry_id: int) -> Optional[EmailQueueEntry]:
        """Get a queue entry by id."""
        try:
            return await self.db.get(EmailQueueEntry, entry_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not read email {entry_id}") from e

    async def list_entries(
        self,
        pending_only: bool = False,
        limit: int = 100,
    ) -> list[EmailQueueEntry]:
        """List queue entries, newest first."""
        query = select(EmailQueueEntry).order_by(EmailQueueEntry.id.desc()).limit(limit)
        if pending_only:
            query = query.where(EmailQueueEntry.is_sent == False)  # noqa: E712

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise StoreError("Could not list queued emails") from e
        return list(result.scalars().all())

    async def mark_sent(self, entry_id: int) -> Optional[EmailQueueEntry]:
        """
        Mark an entry as dispatched.

        Returns:
            The updated entry, or None if no entry has that id
        """
        entry = await self.get(entry_id)
        if entry is None:
            return None

        if not entry.is_sent:
            entry.is_sent = True
            entry.sent_on = datetime.utcnow()
            try:
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                raise StoreError(f"Could not mark email {entry_id} as sent") from e

        return entry
