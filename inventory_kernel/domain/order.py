"""
Order -- in-memory sales/purchase order and its builder state machine.

Responsibility:
    Accumulates order lines for one counterparty, enforces quantity and
    stock rules as lines are added or edited, captures each sale line's cost
    basis at add time, and produces the frozen ``Order`` that submission
    consumes.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  ``OrderDraft`` plus
    the module-level transition functions are pure; ``OrderBuilder`` is a
    thin mutable facade over them for interactive callers.

State machine:

    Empty --add/select--> Building --(counterparty + payment + >=1 line)--> ReadyToSubmit
                                                                              |
                                               submit ok  <-------------------+------> submit failed
                                                  |                                       |
                                                Posted (terminal)                    Rejected
                                                                                          |
                                                                      any edit --> Building/ReadyToSubmit

Invariants enforced:
    - Line quantity is a positive integer.
    - For sale orders, the quantities of all lines for one item never exceed
      the item's known stock.
    - cost_basis is captured when a line is added and never changes on edit.
    - A Posted draft rejects every mutation and every re-submission.

Failure modes:
    - ItemNotSelectedError / InvalidQuantityError / InvalidPriceError /
      LineIndexError (all ValidationError) on bad line input.
    - InsufficientStockError when a sale line exceeds known stock.
    - OrderStateError when building or mutating in the wrong state.
    - DuplicateSubmissionError when a second submit starts while one is in
      flight.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import TypeVar
from uuid import UUID, uuid4

from inventory_kernel.db.types import money_from_value
from inventory_kernel.domain.dtos import CounterpartyRef, ItemSnapshot, OrderKind, PaymentMethod
from inventory_kernel.domain.pricing import PricingResolver
from inventory_kernel.exceptions import (
    DuplicateSubmissionError,
    InsufficientStockError,
    InvalidQuantityError,
    ItemNotSelectedError,
    LineIndexError,
    OrderStateError,
    StockShortfall,
)
from inventory_kernel.utils.idempotency import generate_idempotency_key

R = TypeVar("R")

_DEFAULT_PRICING = PricingResolver()


class OrderState(str, Enum):
    EMPTY = "empty"
    BUILDING = "building"
    READY_TO_SUBMIT = "ready_to_submit"
    POSTED = "posted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class OrderLine:
    """
    One line of an order.

    ``known_stock`` is the item quantity the builder saw when the line was
    added (or last refreshed); submission re-fetches the real value.
    """

    line_no: int
    item_id: UUID
    item_name: str
    item_sku: str
    quantity: int
    unit_price: Decimal
    cost_basis: Decimal
    known_stock: int

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.unit_price

    @property
    def cost_amount(self) -> Decimal:
        return self.quantity * self.cost_basis


@dataclass(frozen=True)
class Order:
    """A complete order, ready to be submitted."""

    order_key: UUID
    kind: OrderKind
    counterparty: CounterpartyRef
    payment_method: PaymentMethod
    lines: tuple[OrderLine, ...]

    @property
    def idempotency_key(self) -> str:
        return generate_idempotency_key("orders", self.kind.value, self.order_key)

    def total(self) -> Decimal:
        return sum((line.amount for line in self.lines), Decimal("0"))

    def cost_total(self) -> Decimal:
        return sum((line.cost_amount for line in self.lines), Decimal("0"))

    def quantity_by_item(self) -> dict[UUID, int]:
        totals: dict[UUID, int] = {}
        for line in self.lines:
            totals[line.item_id] = totals.get(line.item_id, 0) + line.quantity
        return totals

    def item_names(self) -> list[str]:
        """Distinct item names in line order."""
        seen: list[str] = []
        for line in self.lines:
            if line.item_name not in seen:
                seen.append(line.item_name)
        return seen


@dataclass(frozen=True)
class OrderDraft:
    """Immutable snapshot of an order under construction."""

    kind: OrderKind
    order_key: UUID
    counterparty: CounterpartyRef | None = None
    payment_method: PaymentMethod | None = None
    lines: tuple[OrderLine, ...] = ()
    posted: bool = False
    rejection_code: str | None = None

    @property
    def state(self) -> OrderState:
        if self.posted:
            return OrderState.POSTED
        if self.rejection_code is not None:
            return OrderState.REJECTED
        if not self.missing():
            return OrderState.READY_TO_SUBMIT
        if self.lines or self.counterparty is not None or self.payment_method is not None:
            return OrderState.BUILDING
        return OrderState.EMPTY

    def missing(self) -> tuple[str, ...]:
        missing = []
        if self.counterparty is None:
            missing.append("counterparty")
        if self.payment_method is None:
            missing.append("payment_method")
        if not self.lines:
            missing.append("lines")
        return tuple(missing)


# ---------------------------------------------------------------------------
# Pure transitions
# ---------------------------------------------------------------------------


def new_draft(kind: OrderKind | str, order_key: UUID | None = None) -> OrderDraft:
    return OrderDraft(kind=OrderKind(kind), order_key=order_key or uuid4())


def _editable(draft: OrderDraft, operation: str) -> OrderDraft:
    """Guard against editing a posted order; editing a rejected one reopens it."""
    if draft.posted:
        raise OrderStateError(OrderState.POSTED.value, operation)
    if draft.rejection_code is not None:
        return replace(draft, rejection_code=None)
    return draft


def _validate_quantity(quantity: object) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(quantity)
    return quantity


def _check_stock(
    draft: OrderDraft,
    item_id: UUID,
    quantity: int,
    available: int,
    exclude_index: int | None = None,
) -> None:
    """Sale orders may not hold more of one item than is known to be on hand."""
    if draft.kind != OrderKind.SALE:
        return
    already = sum(
        line.quantity
        for index, line in enumerate(draft.lines)
        if line.item_id == item_id and index != exclude_index
    )
    requested = already + quantity
    if requested > available:
        raise InsufficientStockError(
            [StockShortfall(item_id=str(item_id), requested=requested, available=available)]
        )


def _renumber(lines: list[OrderLine]) -> tuple[OrderLine, ...]:
    return tuple(
        line if line.line_no == number else replace(line, line_no=number)
        for number, line in enumerate(lines, start=1)
    )


def select_counterparty(draft: OrderDraft, counterparty: CounterpartyRef | None) -> OrderDraft:
    draft = _editable(draft, "select counterparty for")
    return replace(draft, counterparty=counterparty)


def select_payment_method(draft: OrderDraft, method: PaymentMethod | str) -> OrderDraft:
    draft = _editable(draft, "select payment method for")
    return replace(draft, payment_method=PaymentMethod(method))


def add_line(
    draft: OrderDraft,
    item: ItemSnapshot | None,
    quantity: int,
    unit_price: Decimal | int | str | None = None,
    pricing: PricingResolver = _DEFAULT_PRICING,
) -> OrderDraft:
    """
    Append a line for ``item``.

    The unit price defaults from ``pricing``; an explicit ``unit_price``
    overrides it.  The cost basis is copied from the item's current
    cost_price and frozen on the line.
    """
    draft = _editable(draft, "add a line to")
    if item is None:
        raise ItemNotSelectedError()
    quantity = _validate_quantity(quantity)
    _check_stock(draft, item.id, quantity, item.quantity)

    if unit_price is None:
        price = pricing.default_unit_price(item, draft.kind)
    else:
        price = money_from_value(unit_price, field="unit_price")

    line = OrderLine(
        line_no=len(draft.lines) + 1,
        item_id=item.id,
        item_name=item.name,
        item_sku=item.sku,
        quantity=quantity,
        unit_price=price,
        cost_basis=pricing.cost_basis(item),
        known_stock=item.quantity,
    )
    return replace(draft, lines=draft.lines + (line,))


def edit_line(
    draft: OrderDraft,
    index: int,
    quantity: int | None = None,
    unit_price: Decimal | int | str | None = None,
    known_stock: int | None = None,
) -> OrderDraft:
    """
    Change quantity and/or unit price of the line at ``index`` (0-based).

    ``known_stock`` refreshes the stock figure used for the sale check.
    cost_basis is left untouched.
    """
    draft = _editable(draft, "edit a line of")
    if not 0 <= index < len(draft.lines):
        raise LineIndexError(index, len(draft.lines))

    line = draft.lines[index]
    changes: dict = {}
    if known_stock is not None:
        changes["known_stock"] = known_stock
    if quantity is not None:
        changes["quantity"] = _validate_quantity(quantity)
    if unit_price is not None:
        changes["unit_price"] = money_from_value(unit_price, field="unit_price")

    updated = replace(line, **changes)
    _check_stock(draft, updated.item_id, updated.quantity, updated.known_stock, exclude_index=index)

    lines = list(draft.lines)
    lines[index] = updated
    return replace(draft, lines=tuple(lines))


def remove_line(draft: OrderDraft, index: int) -> OrderDraft:
    draft = _editable(draft, "remove a line from")
    if not 0 <= index < len(draft.lines):
        raise LineIndexError(index, len(draft.lines))
    lines = list(draft.lines)
    del lines[index]
    return replace(draft, lines=_renumber(lines))


def total(draft: OrderDraft) -> Decimal:
    return sum((line.amount for line in draft.lines), Decimal("0"))


def cost_total(draft: OrderDraft) -> Decimal:
    return sum((line.cost_amount for line in draft.lines), Decimal("0"))


def build_order(draft: OrderDraft) -> Order:
    """Freeze a complete draft into an Order."""
    if draft.posted:
        raise OrderStateError(OrderState.POSTED.value, "submit")
    missing = draft.missing()
    if missing:
        raise OrderStateError(draft.state.value, "submit", missing)
    return Order(
        order_key=draft.order_key,
        kind=draft.kind,
        counterparty=draft.counterparty,
        payment_method=draft.payment_method,
        lines=draft.lines,
    )


def mark_posted(draft: OrderDraft) -> OrderDraft:
    return replace(draft, posted=True, rejection_code=None)


def mark_rejected(draft: OrderDraft, code: str) -> OrderDraft:
    if draft.posted:
        raise OrderStateError(OrderState.POSTED.value, "reject")
    return replace(draft, rejection_code=code)


# ---------------------------------------------------------------------------
# Mutable facade
# ---------------------------------------------------------------------------


class OrderBuilder:
    """
    Interactive order builder.

    Contract:
        Wraps an OrderDraft and replaces it on every transition.  ``submit``
        hands the built Order to a submitter callable while holding a
        non-blocking lock, so a double click cannot start two submissions.

    Guarantees:
        - A failed transition leaves the current draft unchanged.
        - After a successful submit the builder is Posted and frozen.
        - After a failed submit the builder is Rejected; any edit reopens it.
    """

    def __init__(
        self,
        kind: OrderKind | str,
        pricing: PricingResolver | None = None,
        order_key: UUID | None = None,
    ):
        self._draft = new_draft(kind, order_key)
        self._pricing = pricing or _DEFAULT_PRICING
        self._submit_lock = threading.Lock()

    @property
    def draft(self) -> OrderDraft:
        return self._draft

    @property
    def state(self) -> OrderState:
        return self._draft.state

    @property
    def order_key(self) -> UUID:
        return self._draft.order_key

    @property
    def lines(self) -> tuple[OrderLine, ...]:
        return self._draft.lines

    def select_counterparty(self, counterparty: CounterpartyRef | None) -> OrderBuilder:
        self._draft = select_counterparty(self._draft, counterparty)
        return self

    def select_payment_method(self, method: PaymentMethod | str) -> OrderBuilder:
        self._draft = select_payment_method(self._draft, method)
        return self

    def add_line(
        self,
        item: ItemSnapshot | None,
        quantity: int,
        unit_price: Decimal | int | str | None = None,
    ) -> OrderBuilder:
        self._draft = add_line(self._draft, item, quantity, unit_price, self._pricing)
        return self

    def edit_line(
        self,
        index: int,
        quantity: int | None = None,
        unit_price: Decimal | int | str | None = None,
        known_stock: int | None = None,
    ) -> OrderBuilder:
        self._draft = edit_line(self._draft, index, quantity, unit_price, known_stock)
        return self

    def remove_line(self, index: int) -> OrderBuilder:
        self._draft = remove_line(self._draft, index)
        return self

    def total(self) -> Decimal:
        return total(self._draft)

    def cost_total(self) -> Decimal:
        return cost_total(self._draft)

    def build(self) -> Order:
        return build_order(self._draft)

    def submit(self, submitter: Callable[[Order], R]) -> R:
        """
        Build the order and pass it to ``submitter`` exactly once.

        Raises:
            DuplicateSubmissionError: another submit is still in flight.
            OrderStateError: the order is incomplete or already posted.
        """
        if not self._submit_lock.acquire(blocking=False):
            raise DuplicateSubmissionError(str(self._draft.order_key))
        try:
            order = build_order(self._draft)
            try:
                result = submitter(order)
            except Exception as exc:
                self._draft = mark_rejected(
                    self._draft, getattr(exc, "code", type(exc).__name__)
                )
                raise
            self._draft = mark_posted(self._draft)
            return result
        finally:
            self._submit_lock.release()
