"""
MemoryLedgerStore -- non-transactional, thread-safe in-process Ledger Store.

Responsibility:
    Holds accounts, items, counterparties, journal entries and transactions in
    dictionaries.  Every write is visible immediately and there is no
    rollback, so submissions against this store run as a compensating saga
    (see services.unit_of_work).  It stands in for remote stores that offer
    no multi-statement transactions, and is the store used by single-process
    tools and property tests.

Invariants enforced:
    - Every operation runs under one re-entrant lock, so compare-and-swap
      on item quantity is atomic across threads.
    - Quantity never drops below zero (a write that would do so is refused
      with PersistenceError, mirroring the SQL CHECK constraint).
    - Idempotency keys are unique across journal entries.
    - An entry is in flight from ``create_journal_entry`` until the unit of
      work confirms it.  Looking up an in-flight entry by key raises
      DuplicateSubmissionError, so a concurrent duplicate is never told the
      order is posted while the first submission can still be compensated.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from inventory_kernel.domain.dtos import (
    AccountSnapshot,
    AccountType,
    CounterpartyRef,
    ItemSnapshot,
    JournalEntryRecord,
    JournalLineRecord,
    TransactionRecord,
)
from inventory_kernel.exceptions import (
    DuplicateSubmissionError,
    PersistenceError,
    RecordNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.ledger_store import LedgerStore, NewJournalLine, NewTransaction

logger = get_logger("services.memory_store")


class MemoryLedgerStore(LedgerStore):
    """
    In-memory Ledger Store without transactions.

    Contract:
        Seed with ``add_account`` / ``add_item`` / ``add_customer`` /
        ``add_supplier``; then use it wherever a LedgerStore is expected.

    Guarantees:
        - Reads return snapshots; mutating a snapshot never affects the store.
        - Journal lines and transactions are returned in insertion order.
    """

    supports_transactions = False

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._accounts: dict[UUID, AccountSnapshot] = {}
        self._items: dict[UUID, ItemSnapshot] = {}
        self._customers: dict[UUID, CounterpartyRef] = {}
        self._suppliers: dict[UUID, CounterpartyRef] = {}
        self._entries: dict[UUID, JournalEntryRecord] = {}
        self._entry_by_key: dict[str, UUID] = {}
        self._in_flight: set[UUID] = set()
        self._transactions: dict[UUID, TransactionRecord] = {}

    # -- seeding -------------------------------------------------------------

    def add_account(
        self,
        code: str,
        name: str,
        account_type: AccountType | str,
        is_active: bool = True,
    ) -> AccountSnapshot:
        account = AccountSnapshot(
            id=uuid4(),
            code=code,
            name=name,
            account_type=AccountType(account_type),
            is_active=is_active,
        )
        with self._lock:
            self._accounts[account.id] = account
        return account

    def add_item(
        self,
        name: str,
        sku: str,
        quantity: int = 0,
        cost_price: Decimal = Decimal("0"),
        selling_price: Decimal = Decimal("0"),
        shipment_threshold: int = 0,
        uom: str = "pcs",
        description: str | None = None,
    ) -> ItemSnapshot:
        item = ItemSnapshot(
            id=uuid4(),
            name=name,
            sku=sku,
            quantity=quantity,
            cost_price=Decimal(cost_price),
            selling_price=Decimal(selling_price),
            shipment_threshold=shipment_threshold,
            uom=uom,
            description=description,
        )
        with self._lock:
            self._items[item.id] = item
        return item

    def add_customer(self, name: str) -> CounterpartyRef:
        customer = CounterpartyRef(id=uuid4(), name=name)
        with self._lock:
            self._customers[customer.id] = customer
        return customer

    def add_supplier(self, name: str) -> CounterpartyRef:
        supplier = CounterpartyRef(id=uuid4(), name=name)
        with self._lock:
            self._suppliers[supplier.id] = supplier
        return supplier

    # -- reads ---------------------------------------------------------------

    def list_accounts(self) -> list[AccountSnapshot]:
        with self._lock:
            return sorted(self._accounts.values(), key=lambda a: a.code)

    def list_items(self) -> list[ItemSnapshot]:
        with self._lock:
            return sorted(self._items.values(), key=lambda i: i.name)

    def get_item(self, item_id: UUID) -> ItemSnapshot:
        with self._lock:
            item = self._items.get(item_id)
        if item is None:
            raise RecordNotFoundError("item", str(item_id))
        return item

    def list_customers(self) -> list[CounterpartyRef]:
        with self._lock:
            return sorted(self._customers.values(), key=lambda c: c.name)

    def list_suppliers(self) -> list[CounterpartyRef]:
        with self._lock:
            return sorted(self._suppliers.values(), key=lambda s: s.name)

    def find_journal_entry_by_key(self, idempotency_key: str) -> JournalEntryRecord | None:
        with self._lock:
            entry_id = self._entry_by_key.get(idempotency_key)
            if entry_id is None:
                return None
            if entry_id in self._in_flight:
                raise DuplicateSubmissionError(idempotency_key)
            return self._entries[entry_id]

    def list_transactions_for_entry(self, entry_id: UUID) -> list[TransactionRecord]:
        with self._lock:
            return sorted(
                (t for t in self._transactions.values() if t.journal_entry_id == entry_id),
                key=lambda t: t.line_no,
            )

    def list_journal_entries(self) -> list[JournalEntryRecord]:
        with self._lock:
            return list(self._entries.values())

    def list_transactions(self) -> list[TransactionRecord]:
        with self._lock:
            return list(self._transactions.values())

    # -- writes --------------------------------------------------------------

    def create_journal_entry(
        self,
        description: str,
        source: str,
        idempotency_key: str | None,
        posted_at: datetime,
    ) -> UUID:
        with self._lock:
            if idempotency_key is not None and idempotency_key in self._entry_by_key:
                raise DuplicateSubmissionError(idempotency_key)
            entry = JournalEntryRecord(
                id=uuid4(),
                description=description,
                source=source,
                idempotency_key=idempotency_key,
                posted_at=posted_at,
            )
            self._entries[entry.id] = entry
            self._in_flight.add(entry.id)
            if idempotency_key is not None:
                self._entry_by_key[idempotency_key] = entry.id
        return entry.id

    def insert_journal_lines(self, lines: Sequence[NewJournalLine]) -> None:
        with self._lock:
            for line in lines:
                entry = self._entries.get(line.entry_id)
                if entry is None:
                    raise PersistenceError(
                        "insert_journal_lines", f"journal entry {line.entry_id} does not exist"
                    )
                account = self._accounts.get(line.account_id)
                if account is None:
                    raise PersistenceError(
                        "insert_journal_lines", f"account {line.account_id} does not exist"
                    )
            for line in lines:
                entry = self._entries[line.entry_id]
                record = JournalLineRecord(
                    account_id=line.account_id,
                    debit=line.debit,
                    credit=line.credit,
                    line_seq=line.line_seq,
                    memo=line.memo,
                    account_name=self._accounts[line.account_id].name,
                )
                self._entries[line.entry_id] = replace(entry, lines=entry.lines + (record,))

    def update_item_quantity(
        self,
        item_id: UUID,
        new_quantity: int,
        expected_quantity: int | None = None,
    ) -> bool:
        with self._lock:
            item = self._items.get(item_id)
            if item is None:
                raise RecordNotFoundError("item", str(item_id))
            if expected_quantity is not None and item.quantity != expected_quantity:
                return False
            if new_quantity < 0:
                raise PersistenceError(
                    "update_item_quantity", f"quantity of item {item_id} cannot be negative"
                )
            self._items[item_id] = replace(item, quantity=new_quantity)
            return True

    def update_item_cost_price(self, item_id: UUID, cost_price: Decimal) -> Decimal:
        with self._lock:
            item = self._items.get(item_id)
            if item is None:
                raise RecordNotFoundError("item", str(item_id))
            self._items[item_id] = replace(item, cost_price=cost_price)
            return item.cost_price

    def insert_transaction(self, transaction: NewTransaction) -> UUID:
        with self._lock:
            item = self._items.get(transaction.item_id)
            if item is None:
                raise RecordNotFoundError("item", str(transaction.item_id))
            record = TransactionRecord(
                id=uuid4(),
                item_id=transaction.item_id,
                type=transaction.type,
                quantity=transaction.quantity,
                entity_name=transaction.entity_name,
                journal_entry_id=transaction.journal_entry_id,
                line_no=transaction.line_no,
                occurred_at=transaction.occurred_at,
                item_name=item.name,
                item_sku=item.sku,
            )
            self._transactions[record.id] = record
        return record.id

    def confirm_journal_entry(self, entry_id: UUID) -> None:
        with self._lock:
            self._in_flight.discard(entry_id)

    # -- compensations -------------------------------------------------------

    def delete_journal_entry(self, entry_id: UUID) -> None:
        with self._lock:
            entry = self._entries.pop(entry_id, None)
            if entry is None:
                raise RecordNotFoundError("journal_entry", str(entry_id))
            self._in_flight.discard(entry_id)
            if entry.idempotency_key is not None:
                self._entry_by_key.pop(entry.idempotency_key, None)
        logger.info("journal_entry_compensated", extra={"entry_id": str(entry_id)})

    def delete_transaction(self, transaction_id: UUID) -> None:
        with self._lock:
            if self._transactions.pop(transaction_id, None) is None:
                raise RecordNotFoundError("transaction", str(transaction_id))
        logger.info("transaction_compensated", extra={"transaction_id": str(transaction_id)})
