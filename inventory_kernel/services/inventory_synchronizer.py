"""
InventorySynchronizer -- applies an order's stock movements.

Responsibility:
    Aggregates an order's lines into one signed delta per item, re-reads the
    current quantity of every affected item, refuses the whole order when any
    item would go negative, and applies the deltas with compare-and-swap.
    Purchases also record the most recent acquisition cost on the item.

Architecture position:
    Kernel > Services -- imperative shell.  Talks to the Ledger Store only.

Invariants enforced:
    - Stock is never negative: the plan is validated against freshly read
      quantities, and every CAS miss re-validates against the new value.
    - No item is mutated when any item of the order is short.
    - Every write registers its inverse with the UnitOfWork.

Failure modes:
    - InsufficientStockError (all shortfalls) before any mutation, or for
      one item when a concurrent writer drained it during a CAS retry.
    - OptimisticLockError after ``max_cas_attempts`` consecutive CAS misses.
    - PersistenceError / RecordNotFoundError from the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from inventory_kernel.domain.dtos import OrderKind
from inventory_kernel.domain.order import Order
from inventory_kernel.exceptions import (
    InsufficientStockError,
    OptimisticLockError,
    StockShortfall,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.ledger_store import LedgerStore
from inventory_kernel.services.unit_of_work import UnitOfWork

logger = get_logger("services.inventory_synchronizer")

DEFAULT_MAX_CAS_ATTEMPTS = 5


@dataclass(frozen=True)
class StockMovement:
    """Planned change of one item's quantity."""

    item_id: UUID
    delta: int
    observed_quantity: int
    new_cost_price: Decimal | None = None

    @property
    def planned_quantity(self) -> int:
        return self.observed_quantity + self.delta


@dataclass(frozen=True)
class StockPlan:
    order_key: UUID
    kind: OrderKind
    movements: tuple[StockMovement, ...]

    def movement_for(self, item_id: UUID) -> StockMovement | None:
        for movement in self.movements:
            if movement.item_id == item_id:
                return movement
        return None


class InventorySynchronizer:
    """
    Plans and applies stock deltas.

    Contract:
        ``plan(order)`` only reads.  ``apply(plan, uow)`` writes and must run
        inside the submission's UnitOfWork.

    Non-goals:
        - Does NOT lock rows; concurrency is handled by compare-and-swap.
    """

    def __init__(self, store: LedgerStore, max_cas_attempts: int = DEFAULT_MAX_CAS_ATTEMPTS):
        if max_cas_attempts < 1:
            raise ValueError("max_cas_attempts must be at least 1")
        self._store = store
        self._max_attempts = max_cas_attempts

    def plan(self, order: Order) -> StockPlan:
        """
        Build the stock plan from current store quantities.

        Raises:
            InsufficientStockError: listing every item that would go negative.
        """
        sign = -1 if order.kind == OrderKind.SALE else 1

        last_cost: dict[UUID, Decimal] = {}
        if order.kind == OrderKind.PURCHASE:
            for line in order.lines:
                last_cost[line.item_id] = line.unit_price

        movements: list[StockMovement] = []
        shortfalls: list[StockShortfall] = []
        for item_id, quantity in order.quantity_by_item().items():
            current = self._store.get_item(item_id).quantity
            delta = sign * quantity
            if current + delta < 0:
                shortfalls.append(
                    StockShortfall(item_id=str(item_id), requested=quantity, available=current)
                )
                continue
            movements.append(
                StockMovement(
                    item_id=item_id,
                    delta=delta,
                    observed_quantity=current,
                    new_cost_price=last_cost.get(item_id),
                )
            )

        if shortfalls:
            logger.warning(
                "stock_check_failed",
                extra={
                    "shortfalls": [
                        {"item_id": s.item_id, "requested": s.requested, "available": s.available}
                        for s in shortfalls
                    ]
                },
            )
            raise InsufficientStockError(shortfalls)

        logger.debug(
            "stock_plan_built",
            extra={"movement_count": len(movements), "kind": order.kind.value},
        )
        return StockPlan(order_key=order.order_key, kind=order.kind, movements=tuple(movements))

    def _swap(self, item_id: UUID, delta: int, observed: int | None = None) -> tuple[int, int]:
        """
        Apply ``delta`` with compare-and-swap, re-reading on every miss.

        Returns (previous, new) quantities.
        """
        current = observed if observed is not None else self._store.get_item(item_id).quantity
        for attempt in range(1, self._max_attempts + 1):
            new_quantity = current + delta
            if new_quantity < 0:
                raise InsufficientStockError(
                    [StockShortfall(item_id=str(item_id), requested=-delta, available=current)]
                )
            if self._store.update_item_quantity(item_id, new_quantity, expected_quantity=current):
                return current, new_quantity
            logger.info(
                "stock_cas_conflict",
                extra={"item_id": str(item_id), "attempt": attempt, "expected": current},
            )
            current = self._store.get_item(item_id).quantity

        logger.warning(
            "stock_cas_exhausted",
            extra={"item_id": str(item_id), "attempts": self._max_attempts},
        )
        raise OptimisticLockError("item", str(item_id), self._max_attempts)

    def apply(self, plan: StockPlan, uow: UnitOfWork) -> dict[UUID, int]:
        """
        Apply every movement of ``plan``.

        Returns:
            The new quantity of every touched item.
        """
        store = self._store
        results: dict[UUID, int] = {}
        for movement in plan.movements:
            item_id = movement.item_id
            previous, new_quantity = self._swap(item_id, movement.delta, movement.observed_quantity)
            uow.record(
                f"update_item_quantity:{item_id}",
                lambda item_id=item_id, delta=movement.delta: self._swap(item_id, -delta),
            )
            results[item_id] = new_quantity
            logger.info(
                "stock_updated",
                extra={
                    "item_id": str(item_id),
                    "previous_quantity": previous,
                    "new_quantity": new_quantity,
                },
            )

            if movement.new_cost_price is not None:
                previous_cost = store.update_item_cost_price(item_id, movement.new_cost_price)
                uow.record(
                    f"update_item_cost_price:{item_id}",
                    lambda item_id=item_id, cost=previous_cost: store.update_item_cost_price(
                        item_id, cost
                    ),
                )
                logger.debug(
                    "cost_price_updated",
                    extra={
                        "item_id": str(item_id),
                        "previous_cost": str(previous_cost),
                        "new_cost": str(movement.new_cost_price),
                    },
                )
        return results
