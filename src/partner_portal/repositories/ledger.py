"""Repository for approval ledger operations."""

from typing import Sequence

from sqlalchemy import select

from partner_portal.models.form import ApprovalLedgerEntry
from partner_portal.repositories.base import BaseRepository


class LedgerRepository(BaseRepository[ApprovalLedgerEntry]):
    """Append-only access to the approval ledger."""

    model = ApprovalLedgerEntry

    async def get_by_form(self, form_id: str) -> Sequence[ApprovalLedgerEntry]:
        """Get all entries for a form in chronological order.

        @param form_id - Form ID
        @returns List of ledger entries
        """
        stmt = (
            select(self.model)
            .where(self.model.form_id == form_id)
            .order_by(self.model.created_at, self.model.id)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def append(self, entry: ApprovalLedgerEntry) -> ApprovalLedgerEntry:
        """Add an entry without flushing.

        @param entry - New ledger entry
        @returns The same entry
        """
        self.session.add(entry)
        return entry
