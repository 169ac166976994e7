"""
Typed exception hierarchy for the inventory kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Order submission can fail in several very different ways: the cart is
incomplete, stock ran out, the chart of accounts is not mapped, or the store
failed halfway through the unit of work.  Callers must be able to tell those
apart without parsing message strings, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE class attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (item ids, shortfalls, step names)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryLedgerError (base)
    |
    +-- ValidationError                 detected before any write
    |   +-- ItemNotSelectedError
    |   +-- InvalidQuantityError
    |   +-- InvalidPriceError
    |   +-- CounterpartyNotSelectedError
    |   +-- EmptyOrderError
    |   +-- LineIndexError
    |   +-- OrderStateError
    |   +-- UnbalancedEntryError
    |   +-- InvalidJournalLineError
    |   +-- InvalidShipmentThresholdError
    |   +-- DuplicateSkuError
    |
    +-- InsufficientStockError          whole order aborted, nothing mutated
    |
    +-- ConfigurationError              detected before any write
    |   +-- MissingAccountMappingError
    |   +-- UnknownAccountError
    |
    +-- PersistenceError                store call failed
    |   +-- RecordNotFoundError
    |
    +-- PartialCommitError              failed after >= 1 write; rolled back
    |   +-- CompensationFailedError     rollback itself failed (FATAL)
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |   +-- DuplicateSubmissionError
    |
    +-- ImmutabilityViolationError
    +-- ItemReferencedError
    +-- SessionInactiveError

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        result = submission_service.submit(order)
    except InsufficientStockError as e:
        for shortfall in e.shortfalls:
            notify_user(shortfall.item_id, shortfall.requested, shortfall.available)
    except PartialCommitError as e:
        # Rolled back; safe to resubmit the same order key.
        log.warning("submission rolled back after %s", e.completed_steps)
    except CompensationFailedError:
        # Never swallowed: ledger and stock may disagree.
        page_operator()

CompensationFailedError is a subclass of PartialCommitError, so handlers that
need to distinguish the two must catch CompensationFailedError first.
"""

from dataclasses import dataclass
from decimal import Decimal


class InventoryLedgerError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_LEDGER_ERROR"


# Validation exceptions


class ValidationError(InventoryLedgerError):
    """Base exception for input that is rejected before any store write."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class ItemNotSelectedError(ValidationError):
    """An order line was added without an item."""

    code: str = "ITEM_NOT_SELECTED"

    def __init__(self):
        super().__init__("An item must be selected", field="item")


class InvalidQuantityError(ValidationError):
    """Line quantity is not a positive integer."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: object):
        self.quantity = quantity
        super().__init__(
            f"Quantity must be a positive integer, got {quantity!r}",
            field="quantity",
        )


class InvalidPriceError(ValidationError):
    """Unit price or cost is negative, non-finite or not a Decimal."""

    code: str = "INVALID_PRICE"

    def __init__(self, value: object, field: str = "unit_price"):
        self.value = value
        super().__init__(
            f"{field} must be a non-negative finite Decimal, got {value!r}",
            field=field,
        )


class CounterpartyNotSelectedError(ValidationError):
    """No customer (sale) or supplier (purchase) was selected."""

    code: str = "COUNTERPARTY_NOT_SELECTED"

    def __init__(self, kind: str):
        self.kind = kind
        role = "customer" if kind == "sale" else "supplier"
        super().__init__(f"A {role} must be selected", field="counterparty")


class EmptyOrderError(ValidationError):
    """The order has no lines, or no nonzero journal leg."""

    code: str = "EMPTY_ORDER"

    def __init__(self, reason: str = "Order has no lines"):
        super().__init__(reason, field="lines")


class LineIndexError(ValidationError):
    """Line index does not address an existing order line."""

    code: str = "LINE_INDEX_OUT_OF_RANGE"

    def __init__(self, index: int, line_count: int):
        self.index = index
        self.line_count = line_count
        super().__init__(
            f"Line index {index} out of range for order with {line_count} line(s)",
            field="index",
        )


class OrderStateError(ValidationError):
    """Operation is not allowed in the order's current state."""

    code: str = "INVALID_ORDER_STATE"

    def __init__(self, state: str, operation: str, missing: tuple[str, ...] = ()):
        self.state = state
        self.operation = operation
        self.missing = missing
        detail = f" (missing: {', '.join(missing)})" if missing else ""
        super().__init__(f"Cannot {operation} an order in state {state}{detail}")


class UnbalancedEntryError(ValidationError):
    """Journal entry debits do not equal credits."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: Decimal, credits: Decimal):
        self.debits = debits
        self.credits = credits
        super().__init__(f"Unbalanced entry: debits={debits}, credits={credits}")


class InvalidJournalLineError(ValidationError):
    """A journal line has a negative side, both sides set, or neither."""

    code: str = "INVALID_JOURNAL_LINE"

    def __init__(self, line_seq: int, reason: str):
        self.line_seq = line_seq
        self.reason = reason
        super().__init__(f"Invalid journal line {line_seq}: {reason}")


class InvalidShipmentThresholdError(ValidationError):
    """Shipment threshold is zero or negative, so no ratio can be computed."""

    code: str = "INVALID_SHIPMENT_THRESHOLD"

    def __init__(self, item_id: str, threshold: int):
        self.item_id = item_id
        self.threshold = threshold
        super().__init__(
            f"Item {item_id} has invalid shipment threshold {threshold}",
            field="shipment_threshold",
        )


class DuplicateSkuError(ValidationError):
    """Another item already uses this SKU."""

    code: str = "DUPLICATE_SKU"

    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"SKU already in use: {sku}", field="sku")


# Stock exceptions


@dataclass(frozen=True)
class StockShortfall:
    """One item whose requested quantity exceeds what is on hand."""

    item_id: str
    requested: int
    available: int


class InsufficientStockError(InventoryLedgerError):
    """
    Requested quantity exceeds available stock for one or more items.

    The whole order is aborted; `shortfalls` lists every offending item,
    not only the first one found.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, shortfalls: list[StockShortfall] | tuple[StockShortfall, ...]):
        self.shortfalls = tuple(shortfalls)
        first = self.shortfalls[0]
        self.item_id = first.item_id
        self.requested = first.requested
        self.available = first.available
        super().__init__(
            "Insufficient stock: "
            + ", ".join(
                f"item {s.item_id} requested {s.requested}, available {s.available}"
                for s in self.shortfalls
            )
        )


# Configuration exceptions


class ConfigurationError(InventoryLedgerError):
    """Account mapping or engine configuration is missing or invalid."""

    code: str = "CONFIGURATION_ERROR"


class MissingAccountMappingError(ConfigurationError):
    """A role required for posting has no account mapped to it."""

    code: str = "ACCOUNT_ROLE_UNMAPPED"

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"No account mapped for role '{role}'")


class UnknownAccountError(ConfigurationError):
    """A mapped account does not exist in the store (or is inactive)."""

    code: str = "UNKNOWN_ACCOUNT"

    def __init__(self, account_ref: str, role: str | None = None):
        self.account_ref = account_ref
        self.role = role
        where = f" for role '{role}'" if role else ""
        super().__init__(f"Unknown or inactive account {account_ref}{where}")


# Persistence exceptions


class PersistenceError(InventoryLedgerError):
    """A Ledger Store operation failed."""

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Store operation '{operation}' failed: {reason}")


class RecordNotFoundError(PersistenceError):
    """A referenced record does not exist."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"get_{entity_type}", f"{entity_type} {entity_id} not found")


class PartialCommitError(InventoryLedgerError):
    """
    A store failure occurred after at least one write of the unit of work.

    Every earlier write of the submission has been rolled back or
    compensated; resubmitting the same order is safe.
    """

    code: str = "PARTIAL_COMMIT"

    def __init__(
        self,
        completed_steps: tuple[str, ...],
        failed_step: str,
        reason: str,
    ):
        self.completed_steps = completed_steps
        self.failed_step = failed_step
        self.reason = reason
        super().__init__(
            f"Submission failed at '{failed_step}' after "
            f"{list(completed_steps)}; rolled back: {reason}"
        )


class CompensationFailedError(PartialCommitError):
    """
    Rolling back a partially applied submission failed.

    FATAL: ledger and stock may now disagree.  Never swallowed.
    """

    code: str = "COMPENSATION_FAILED"

    def __init__(
        self,
        completed_steps: tuple[str, ...],
        failed_step: str,
        reason: str,
        failed_compensations: tuple[str, ...],
    ):
        self.failed_compensations = failed_compensations
        super().__init__(completed_steps, failed_step, reason)
        self.args = (
            f"Compensation failed for {list(failed_compensations)} after "
            f"'{failed_step}' failed: {reason}",
        )


# Concurrency exceptions


class ConcurrencyError(InventoryLedgerError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Compare-and-swap kept missing because another writer changed the row."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str, attempts: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.attempts = attempts
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id} "
            f"after {attempts} attempt(s)"
        )


class DuplicateSubmissionError(ConcurrencyError):
    """The same order is already being (or has been) submitted."""

    code: str = "DUPLICATE_SUBMISSION"

    def __init__(self, order_key: str):
        self.order_key = order_key
        super().__init__(f"Order {order_key} is already submitted")


# Other exceptions


class ImmutabilityViolationError(InventoryLedgerError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


class ItemReferencedError(InventoryLedgerError):
    """Item cannot be deleted because transactions reference it."""

    code: str = "ITEM_REFERENCED"

    def __init__(self, item_id: str, transaction_count: int):
        self.item_id = item_id
        self.transaction_count = transaction_count
        super().__init__(
            f"Item {item_id} is referenced by {transaction_count} transaction(s)"
        )


class SessionInactiveError(InventoryLedgerError):
    """No authenticated session is active."""

    code: str = "SESSION_INACTIVE"

    def __init__(self):
        super().__init__("No active session; sign in before submitting orders")
