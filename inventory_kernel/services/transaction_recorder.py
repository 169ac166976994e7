"""
TransactionRecorder -- inventory activity log writer.

Responsibility:
    Appends one InventoryTransaction per order line once the journal entry
    and the stock movements of a submission have been written.

Invariants enforced:
    - Exactly one record per order line, keyed by (journal entry, line_no).
    - A re-run for an entry that already has records writes nothing.
"""

from __future__ import annotations

from uuid import UUID

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.order import Order
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.ledger_store import LedgerStore, NewTransaction
from inventory_kernel.services.unit_of_work import UnitOfWork

logger = get_logger("services.transaction_recorder")


class TransactionRecorder:
    def __init__(self, store: LedgerStore, clock: Clock | None = None):
        self._store = store
        self._clock = clock or SystemClock()

    def record(self, order: Order, entry_id: UUID, uow: UnitOfWork) -> tuple[UUID, ...]:
        """Write the activity records for ``order``; returns their ids."""
        store = self._store
        existing = store.list_transactions_for_entry(entry_id)
        if existing:
            logger.info(
                "transactions_already_recorded",
                extra={"entry_id": str(entry_id), "transaction_count": len(existing)},
            )
            return tuple(record.id for record in existing)

        occurred_at = self._clock.now()
        ids: list[UUID] = []
        for line in order.lines:
            transaction_id = store.insert_transaction(
                NewTransaction(
                    item_id=line.item_id,
                    type=order.kind.value,
                    quantity=line.quantity,
                    entity_name=order.counterparty.name,
                    journal_entry_id=entry_id,
                    line_no=line.line_no,
                    occurred_at=occurred_at,
                )
            )
            uow.record(
                f"insert_transaction:{line.line_no}",
                lambda transaction_id=transaction_id: store.delete_transaction(transaction_id),
            )
            ids.append(transaction_id)

        logger.info(
            "transactions_recorded",
            extra={"entry_id": str(entry_id), "transaction_count": len(ids)},
        )
        return tuple(ids)
