"""
OrderSubmissionService -- single entry point for posting an order.

Responsibility:
    Orchestrates the complete submission pipeline for one sales or purchase
    order: gate, validation, account resolution, journal computation,
    idempotency check, then journal + stock + activity log written as one
    unit of work.

Architecture position:
    Kernel > Services -- imperative shell, owns the unit-of-work boundary.
    Delegates pure logic to domain (PostingEngine) and writes to peer
    services (JournalWriter, InventorySynchronizer, TransactionRecorder).

Submission flow:
    submit(order)
      1. Session gate (optional ``session_active`` collaborator)
      2. Validate the order (lines, counterparty, payment method)
      3. Resolve the account mapping once for this submission
      4. Compute the journal draft (pure)
      5. Idempotency: existing entry for the order key -> ALREADY_POSTED
      6. Unit of work: plan stock, write journal, apply stock, record log
      7. Commit -> POSTED

Invariants enforced:
    - Atomicity: either journal entry, stock and activity log are all
      written, or none of them is visible afterwards.
    - Exactly-once: one order key never produces a second journal entry;
      a concurrent duplicate insert resolves to ALREADY_POSTED once the
      first submission has committed.
    - Stock is re-read immediately before mutation, never trusted from the
      builder.

Failure modes:
    - SessionInactiveError: gate closed, nothing read or written.
    - ValidationError / ConfigurationError: before any write.
    - InsufficientStockError: before any write (whole order refused), or
      after rollback when a concurrent writer drained stock mid-submission.
    - OptimisticLockError: CAS retries exhausted; rolled back.
    - DuplicateSubmissionError: the same order is still in flight in
      another submission that has not committed yet.
    - PersistenceError: store failed before any write succeeded.
    - PartialCommitError: store failed after >= 1 write; rolled back.
    - CompensationFailedError: rollback itself failed (FATAL, CRITICAL log).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from inventory_kernel.domain.account_mapping import AccountMapping
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import OrderKind, PaymentMethod
from inventory_kernel.domain.order import Order
from inventory_kernel.domain.posting import JournalDraft, PostingEngine
from inventory_kernel.exceptions import (
    CounterpartyNotSelectedError,
    DuplicateSubmissionError,
    EmptyOrderError,
    InvalidQuantityError,
    SessionInactiveError,
    ValidationError,
)
from inventory_kernel.logging_config import LogContext, get_logger, timed
from inventory_kernel.services.inventory_synchronizer import (
    DEFAULT_MAX_CAS_ATTEMPTS,
    InventorySynchronizer,
)
from inventory_kernel.services.journal_writer import JournalWriter
from inventory_kernel.services.ledger_store import LedgerStore
from inventory_kernel.services.transaction_recorder import TransactionRecorder
from inventory_kernel.services.unit_of_work import UnitOfWork

logger = get_logger("services.order_submission")


class SubmissionStatus(str, Enum):
    POSTED = "posted"
    ALREADY_POSTED = "already_posted"


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a successful submission."""

    status: SubmissionStatus
    order_key: UUID
    entry_id: UUID
    transaction_ids: tuple[UUID, ...] = ()
    revenue: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")

    @property
    def is_new(self) -> bool:
        return self.status == SubmissionStatus.POSTED

    @classmethod
    def posted(
        cls,
        order: Order,
        entry_id: UUID,
        transaction_ids: tuple[UUID, ...],
    ) -> SubmissionResult:
        revenue, cost = _order_totals(order)
        return cls(
            status=SubmissionStatus.POSTED,
            order_key=order.order_key,
            entry_id=entry_id,
            transaction_ids=transaction_ids,
            revenue=revenue,
            cost=cost,
        )

    @classmethod
    def already_posted(
        cls,
        order: Order,
        entry_id: UUID,
        transaction_ids: tuple[UUID, ...],
    ) -> SubmissionResult:
        revenue, cost = _order_totals(order)
        return cls(
            status=SubmissionStatus.ALREADY_POSTED,
            order_key=order.order_key,
            entry_id=entry_id,
            transaction_ids=transaction_ids,
            revenue=revenue,
            cost=cost,
        )


def _order_totals(order: Order) -> tuple[Decimal, Decimal]:
    if order.kind == OrderKind.SALE:
        return order.total(), order.cost_total()
    return Decimal("0"), order.total()


def validate_order(order: Order) -> None:
    """
    Re-check an order built outside OrderBuilder.

    Raises:
        EmptyOrderError, CounterpartyNotSelectedError, InvalidQuantityError,
        ValidationError (missing payment method).
    """
    if not order.lines:
        raise EmptyOrderError()
    if order.counterparty is None:
        raise CounterpartyNotSelectedError(order.kind.value)
    if not isinstance(order.payment_method, PaymentMethod):
        raise ValidationError("A payment method must be selected", field="payment_method")
    for line in order.lines:
        if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity <= 0:
            raise InvalidQuantityError(line.quantity)


class OrderSubmissionService:
    """
    Posts orders to the ledger and the stock table.

    Contract:
        ``submit(order)`` returns a SubmissionResult whose status is POSTED
        or ALREADY_POSTED, or raises a typed InventoryLedgerError.  Every
        raised error leaves the store as it was before the call.

    Guarantees:
        - Unit-of-work strategy follows the store: one database transaction
          when ``store.supports_transactions``, a compensating saga
          otherwise.
        - No automatic retries of reported errors; CAS retries inside the
          synchronizer are not reported errors.

    Non-goals:
        - Does NOT build or price orders (see domain.order).
        - Does NOT authenticate; ``session_active`` is a collaborator.
    """

    def __init__(
        self,
        store: LedgerStore,
        account_mapping: AccountMapping | Callable[[], AccountMapping],
        clock: Clock | None = None,
        max_cas_attempts: int = DEFAULT_MAX_CAS_ATTEMPTS,
        session_active: Callable[[], bool] | None = None,
    ):
        self._store = store
        self._account_mapping = account_mapping
        self._clock = clock or SystemClock()
        self._session_active = session_active
        self._journal_writer = JournalWriter(store, self._clock)
        self._synchronizer = InventorySynchronizer(store, max_cas_attempts)
        self._recorder = TransactionRecorder(store, self._clock)

    def _resolve_mapping(self) -> AccountMapping:
        mapping = self._account_mapping
        return mapping() if callable(mapping) else mapping

    def submit(self, order: Order) -> SubmissionResult:
        """
        Submit ``order``.

        Postconditions:
            - POSTED: exactly one journal entry with the order's key, one
              stock delta per item, one activity record per line.
            - ALREADY_POSTED: nothing written.
        """
        with LogContext.bind(
            correlation_id=str(uuid4()),
            order_key=str(order.order_key),
            producer="orders",
        ):
            logger.info(
                "order_submission_started",
                extra={
                    "kind": order.kind.value,
                    "line_count": len(order.lines),
                    "payment_method": getattr(order.payment_method, "value", None),
                },
            )
            try:
                with timed() as timing:
                    result = self._do_submit(order)
            except Exception as exc:
                logger.error(
                    "order_submission_failed",
                    extra={
                        **timing,
                        "error_code": getattr(exc, "code", type(exc).__name__),
                    },
                )
                raise

            logger.info(
                "order_submission_completed",
                extra={
                    "status": result.status.value,
                    "entry_id": str(result.entry_id),
                    "transaction_count": len(result.transaction_ids),
                    **timing,
                },
            )
            return result

    def _do_submit(self, order: Order) -> SubmissionResult:
        if self._session_active is not None and not self._session_active():
            raise SessionInactiveError()

        validate_order(order)

        engine = PostingEngine(self._resolve_mapping())
        draft = engine.build_entry(order)

        existing = self._already_posted(order)
        if existing is not None:
            return existing

        uow = UnitOfWork(self._store, f"submit_{order.kind.value}")
        try:
            entry_id, transaction_ids = self._write(order, draft, uow)
            uow.commit()
        except DuplicateSubmissionError as exc:
            failure = uow.abort(exc)
            if failure is not exc:
                raise failure from exc
            existing = self._already_posted(order)
            if existing is None:
                raise
            return existing
        except Exception as exc:
            failure = uow.abort(exc)
            if failure is exc:
                raise
            raise failure from exc

        return SubmissionResult.posted(order, entry_id, transaction_ids)

    def _already_posted(self, order: Order) -> SubmissionResult | None:
        entry = self._store.find_journal_entry_by_key(order.idempotency_key)
        if entry is None:
            return None
        transactions = self._store.list_transactions_for_entry(entry.id)
        logger.info(
            "order_already_posted",
            extra={"entry_id": str(entry.id), "idempotency_key": order.idempotency_key},
        )
        return SubmissionResult.already_posted(
            order, entry.id, tuple(record.id for record in transactions)
        )

    def _write(
        self,
        order: Order,
        draft: JournalDraft,
        uow: UnitOfWork,
    ) -> tuple[UUID, tuple[UUID, ...]]:
        plan = self._synchronizer.plan(order)
        entry_id = self._journal_writer.write(draft, uow)
        self._synchronizer.apply(plan, uow)
        transaction_ids = self._recorder.record(order, entry_id, uow)
        return entry_id, transaction_ids
