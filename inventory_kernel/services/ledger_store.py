"""
LedgerStore -- the persistence boundary of the posting engine.

Responsibility:
    Declares every read and write the engine performs against persistent
    state, and provides the SQLAlchemy implementation.  Services above this
    boundary see only DTO snapshots, never ORM rows or sessions.

Architecture position:
    Kernel > Services -- imperative shell.  ``SqlLedgerStore`` is the only
    class in the engine that touches a Session on the write path.

Unit-of-work contract:
    - ``supports_transactions = True``: every write joins one database
      transaction; ``commit()`` / ``rollback()`` end it.  Compensations are
      never needed.
    - ``supports_transactions = False``: each write is durable immediately.
      The caller must undo earlier writes itself, using the compensation
      operations (``delete_journal_entry``, ``delete_transaction``, inverse
      quantity and cost updates).  Entries it writes stay in flight until
      ``confirm_journal_entry()`` is called after the last write succeeds.

Invariants enforced:
    - update_item_quantity with ``expected_quantity`` is a compare-and-swap:
      it succeeds only if the stored quantity still equals the expected one.
    - A second journal entry with an existing idempotency key is refused
      with DuplicateSubmissionError.

Failure modes:
    - PersistenceError for any driver/database failure (SQLAlchemyError is
      never leaked past this module).
    - RecordNotFoundError for unknown item ids.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from inventory_kernel.domain.dtos import (
    AccountSnapshot,
    CounterpartyRef,
    ItemSnapshot,
    JournalEntryRecord,
    TransactionRecord,
)
from inventory_kernel.exceptions import (
    DuplicateSubmissionError,
    PersistenceError,
    RecordNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.account import Account
from inventory_kernel.models.item import Item
from inventory_kernel.models.journal import JournalEntry, JournalLine
from inventory_kernel.models.party import Customer, Supplier
from inventory_kernel.models.transaction import InventoryTransaction

logger = get_logger("services.ledger_store")


@dataclass(frozen=True)
class NewJournalLine:
    entry_id: UUID
    account_id: UUID
    debit: Decimal
    credit: Decimal
    line_seq: int
    memo: str | None = None


@dataclass(frozen=True)
class NewTransaction:
    item_id: UUID
    type: str
    quantity: int
    entity_name: str
    journal_entry_id: UUID | None
    line_no: int
    occurred_at: datetime


class LedgerStore(ABC):
    """
    Abstract Ledger Store.

    Contract:
        Reads return frozen DTOs.  Writes return new ids (or a CAS outcome).
        Implementations translate their own driver errors into
        PersistenceError.
    """

    supports_transactions: bool = False

    # -- reads ---------------------------------------------------------------

    @abstractmethod
    def list_accounts(self) -> list[AccountSnapshot]: ...

    @abstractmethod
    def list_items(self) -> list[ItemSnapshot]: ...

    @abstractmethod
    def get_item(self, item_id: UUID) -> ItemSnapshot:
        """Current state of one item, read from the store (never cached)."""

    @abstractmethod
    def list_customers(self) -> list[CounterpartyRef]: ...

    @abstractmethod
    def list_suppliers(self) -> list[CounterpartyRef]: ...

    @abstractmethod
    def find_journal_entry_by_key(self, idempotency_key: str) -> JournalEntryRecord | None: ...

    @abstractmethod
    def list_transactions_for_entry(self, entry_id: UUID) -> list[TransactionRecord]: ...

    # -- writes --------------------------------------------------------------

    @abstractmethod
    def create_journal_entry(
        self,
        description: str,
        source: str,
        idempotency_key: str | None,
        posted_at: datetime,
    ) -> UUID: ...

    @abstractmethod
    def insert_journal_lines(self, lines: Sequence[NewJournalLine]) -> None: ...

    @abstractmethod
    def update_item_quantity(
        self,
        item_id: UUID,
        new_quantity: int,
        expected_quantity: int | None = None,
    ) -> bool:
        """Set quantity; with ``expected_quantity`` only if it still matches."""

    @abstractmethod
    def update_item_cost_price(self, item_id: UUID, cost_price: Decimal) -> Decimal:
        """Set cost_price and return the previous value."""

    @abstractmethod
    def insert_transaction(self, transaction: NewTransaction) -> UUID: ...

    # -- unit of work --------------------------------------------------------

    def commit(self) -> None:
        """End the unit of work successfully (no-op for non-transactional stores)."""

    def rollback(self) -> None:
        """Discard the unit of work (no-op for non-transactional stores)."""

    def confirm_journal_entry(self, entry_id: UUID) -> None:
        """Mark an entry as committed (no-op for transactional stores)."""

    # -- compensations (non-transactional stores only) -------------------------

    def delete_journal_entry(self, entry_id: UUID) -> None:
        raise PersistenceError("delete_journal_entry", "journal entries are append-only in this store")

    def delete_transaction(self, transaction_id: UUID) -> None:
        raise PersistenceError("delete_transaction", "transactions are append-only in this store")


class SqlLedgerStore(LedgerStore):
    """
    SQLAlchemy-backed Ledger Store.

    Contract:
        All writes flush into the caller's session.  ``commit()`` and
        ``rollback()`` are the only transaction-boundary calls, and only the
        submission unit of work invokes them.

    Guarantees:
        - Item reads bypass the identity map (populate_existing), so a
          re-fetch always observes the latest committed quantity.
        - Quantity updates are single UPDATE ... WHERE quantity = :expected
          statements.
    """

    supports_transactions = True

    def __init__(self, session: Session):
        self.session = session

    def _fail(self, operation: str, exc: SQLAlchemyError) -> PersistenceError:
        logger.error(
            "store_operation_failed",
            extra={"operation": operation, "error": type(exc).__name__},
        )
        reason = getattr(exc, "orig", None) or exc
        return PersistenceError(operation, str(reason))

    # -- reads ---------------------------------------------------------------

    def list_accounts(self) -> list[AccountSnapshot]:
        try:
            rows = self.session.scalars(select(Account).order_by(Account.code)).all()
        except SQLAlchemyError as exc:
            raise self._fail("list_accounts", exc) from exc
        return [AccountSnapshot.from_model(row) for row in rows]

    def list_items(self) -> list[ItemSnapshot]:
        try:
            rows = self.session.scalars(
                select(Item)
                .order_by(Item.name)
                .execution_options(populate_existing=True)
            ).all()
        except SQLAlchemyError as exc:
            raise self._fail("list_items", exc) from exc
        return [ItemSnapshot.from_model(row) for row in rows]

    def get_item(self, item_id: UUID) -> ItemSnapshot:
        try:
            row = self.session.scalars(
                select(Item)
                .where(Item.id == item_id)
                .execution_options(populate_existing=True)
            ).one_or_none()
        except SQLAlchemyError as exc:
            raise self._fail("get_item", exc) from exc
        if row is None:
            raise RecordNotFoundError("item", str(item_id))
        return ItemSnapshot.from_model(row)

    def list_customers(self) -> list[CounterpartyRef]:
        try:
            rows = self.session.scalars(select(Customer).order_by(Customer.name)).all()
        except SQLAlchemyError as exc:
            raise self._fail("list_customers", exc) from exc
        return [CounterpartyRef(id=row.id, name=row.name) for row in rows]

    def list_suppliers(self) -> list[CounterpartyRef]:
        try:
            rows = self.session.scalars(select(Supplier).order_by(Supplier.name)).all()
        except SQLAlchemyError as exc:
            raise self._fail("list_suppliers", exc) from exc
        return [CounterpartyRef(id=row.id, name=row.name) for row in rows]

    def find_journal_entry_by_key(self, idempotency_key: str) -> JournalEntryRecord | None:
        try:
            row = self.session.scalars(
                select(JournalEntry)
                .where(JournalEntry.idempotency_key == idempotency_key)
                .options(selectinload(JournalEntry.lines).selectinload(JournalLine.account))
            ).one_or_none()
        except SQLAlchemyError as exc:
            raise self._fail("find_journal_entry_by_key", exc) from exc
        return JournalEntryRecord.from_model(row) if row is not None else None

    def list_transactions_for_entry(self, entry_id: UUID) -> list[TransactionRecord]:
        try:
            rows = self.session.scalars(
                select(InventoryTransaction)
                .where(InventoryTransaction.journal_entry_id == entry_id)
                .order_by(InventoryTransaction.line_no)
            ).all()
        except SQLAlchemyError as exc:
            raise self._fail("list_transactions_for_entry", exc) from exc
        return [TransactionRecord.from_model(row) for row in rows]

    # -- writes --------------------------------------------------------------

    def create_journal_entry(
        self,
        description: str,
        source: str,
        idempotency_key: str | None,
        posted_at: datetime,
    ) -> UUID:
        entry = JournalEntry(
            description=description,
            source=source,
            idempotency_key=idempotency_key,
            posted_at=posted_at,
        )
        self.session.add(entry)
        try:
            self.session.flush()
        except IntegrityError as exc:
            if idempotency_key is not None:
                # Concurrent insert of the same order
                logger.warning(
                    "concurrent_insert_conflict",
                    extra={"idempotency_key": idempotency_key},
                )
                raise DuplicateSubmissionError(idempotency_key) from exc
            raise self._fail("create_journal_entry", exc) from exc
        except SQLAlchemyError as exc:
            raise self._fail("create_journal_entry", exc) from exc
        return entry.id

    def insert_journal_lines(self, lines: Sequence[NewJournalLine]) -> None:
        self.session.add_all(
            JournalLine(
                entry_id=line.entry_id,
                account_id=line.account_id,
                debit=line.debit,
                credit=line.credit,
                line_seq=line.line_seq,
                memo=line.memo,
            )
            for line in lines
        )
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            raise self._fail("insert_journal_lines", exc) from exc

    def update_item_quantity(
        self,
        item_id: UUID,
        new_quantity: int,
        expected_quantity: int | None = None,
    ) -> bool:
        stmt = update(Item).where(Item.id == item_id)
        if expected_quantity is not None:
            stmt = stmt.where(Item.quantity == expected_quantity)
        stmt = stmt.values(quantity=new_quantity).execution_options(synchronize_session=False)
        try:
            result = self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise self._fail("update_item_quantity", exc) from exc
        return result.rowcount == 1

    def update_item_cost_price(self, item_id: UUID, cost_price: Decimal) -> Decimal:
        previous = self.get_item(item_id).cost_price
        try:
            self.session.execute(
                update(Item)
                .where(Item.id == item_id)
                .values(cost_price=cost_price)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as exc:
            raise self._fail("update_item_cost_price", exc) from exc
        return previous

    def insert_transaction(self, transaction: NewTransaction) -> UUID:
        row = InventoryTransaction(
            item_id=transaction.item_id,
            type=transaction.type,
            quantity=transaction.quantity,
            entity_name=transaction.entity_name,
            journal_entry_id=transaction.journal_entry_id,
            line_no=transaction.line_no,
            occurred_at=transaction.occurred_at,
        )
        self.session.add(row)
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            raise self._fail("insert_transaction", exc) from exc
        return row.id

    # -- unit of work --------------------------------------------------------

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("commit", exc) from exc

    def rollback(self) -> None:
        try:
            self.session.rollback()
        except SQLAlchemyError as exc:
            raise self._fail("rollback", exc) from exc

