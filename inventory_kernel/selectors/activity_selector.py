"""
Module: inventory_kernel.selectors.activity_selector
Responsibility: Read-only activity views -- the inventory movement log, the
    journal log, and one item's history.  All lists are newest first.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from inventory_kernel.domain.dtos import JournalEntryRecord, TransactionRecord
from inventory_kernel.models.journal import JournalEntry, JournalLine
from inventory_kernel.models.transaction import InventoryTransaction
from inventory_kernel.selectors.base import BaseSelector


def _contains(search: str) -> str:
    """LIKE pattern matching ``search`` literally anywhere in the value."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ActivitySelector(BaseSelector[InventoryTransaction]):
    """
    Selector for inventory and journal activity.

    Contract:
        ``search`` filters case-insensitively on a literal substring (``%``
        and ``_`` are not wildcards): on the counterparty name for
        movements, on the description for journal entries.
    """

    def _movements_query(self):
        return (
            select(InventoryTransaction)
            .options(selectinload(InventoryTransaction.item))
            .order_by(
                InventoryTransaction.occurred_at.desc(),
                InventoryTransaction.created_at.desc(),
                InventoryTransaction.line_no,
            )
        )

    def inventory_movements(
        self,
        search: str | None = None,
        limit: int | None = None,
    ) -> list[TransactionRecord]:
        query = self._movements_query()
        if search:
            query = query.where(InventoryTransaction.entity_name.ilike(_contains(search), escape="\\"))
        if limit is not None:
            query = query.limit(limit)
        rows = self.session.scalars(query).all()
        return [TransactionRecord.from_model(row) for row in rows]

    def item_history(self, item_id: UUID) -> list[TransactionRecord]:
        rows = self.session.scalars(
            self._movements_query().where(InventoryTransaction.item_id == item_id)
        ).all()
        return [TransactionRecord.from_model(row) for row in rows]

    def journal_log(
        self,
        search: str | None = None,
        limit: int | None = None,
    ) -> list[JournalEntryRecord]:
        """Journal entries with their lines and account names."""
        query = (
            select(JournalEntry)
            .options(selectinload(JournalEntry.lines).selectinload(JournalLine.account))
            .order_by(JournalEntry.posted_at.desc(), JournalEntry.created_at.desc())
        )
        if search:
            query = query.where(JournalEntry.description.ilike(_contains(search), escape="\\"))
        if limit is not None:
            query = query.limit(limit)
        rows = self.session.scalars(query).all()
        return [JournalEntryRecord.from_model(row) for row in rows]

    def journal_entry(self, entry_id: UUID) -> JournalEntryRecord | None:
        row = self.session.scalars(
            select(JournalEntry)
            .where(JournalEntry.id == entry_id)
            .options(selectinload(JournalEntry.lines).selectinload(JournalLine.account))
        ).one_or_none()
        return JournalEntryRecord.from_model(row) if row is not None else None
