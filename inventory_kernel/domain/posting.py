"""
PostingEngine -- pure order -> balanced journal draft.

Responsibility:
    Turns a complete Order into the journal legs it must post, using an
    AccountMapping resolved once per submission.  Performs no I/O; the
    JournalWriter persists what this module returns.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Posting rules:

    Sale (cash | credit):
        Dr Cash | Receivable     revenue  (sum of quantity * unit_price)
        Cr Sales                 revenue
        Dr COGS                  cogs     (sum of quantity * cost_basis)
        Cr Inventory             cogs

    Purchase (cash | credit):
        Dr Inventory             cost     (sum of quantity * unit_price)
        Cr Cash | Payable        cost

Invariants enforced:
    - Sum of debits == sum of credits, checked before returning.
    - Every line has exactly one nonzero, non-negative side; zero legs are
      omitted rather than posted.
    - Legs of one order that land on the same account and side are merged,
      so no account appears twice on the same side of an entry.
    - Every required role resolves before anything is returned.

Failure modes:
    - MissingAccountMappingError when a required role is unmapped.
    - EmptyOrderError when the order has no lines or no nonzero leg.
    - UnbalancedEntryError / InvalidJournalLineError from validate_lines().
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from inventory_kernel.domain.account_mapping import (
    AccountMapping,
    AccountRole,
    payment_role,
    required_roles,
)
from inventory_kernel.domain.dtos import LineSide, OrderKind
from inventory_kernel.domain.order import Order
from inventory_kernel.exceptions import (
    EmptyOrderError,
    InvalidJournalLineError,
    UnbalancedEntryError,
)

ZERO = Decimal("0")


@dataclass(frozen=True)
class DraftLine:
    """One leg of a journal entry that has not been written yet."""

    account_id: UUID
    debit: Decimal
    credit: Decimal
    line_seq: int
    role: AccountRole | None = None
    memo: str | None = None

    @property
    def side(self) -> LineSide:
        return LineSide.DEBIT if self.debit > ZERO else LineSide.CREDIT

    @property
    def amount(self) -> Decimal:
        return self.debit if self.debit > ZERO else self.credit


@dataclass(frozen=True)
class JournalDraft:
    """Balanced journal entry ready for the JournalWriter."""

    description: str
    source: str
    idempotency_key: str | None
    lines: tuple[DraftLine, ...]

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits

    def amount_for(self, role: AccountRole, side: LineSide) -> Decimal:
        """Total posted to ``role`` on ``side`` (zero when the leg was omitted)."""
        return sum(
            (line.amount for line in self.lines if line.role == role and line.side == side),
            ZERO,
        )


def validate_lines(lines: Sequence[DraftLine]) -> None:
    """
    Check the single-side rule for every line and the balance of the whole.

    Raises:
        InvalidJournalLineError: a negative side, both sides set, or neither.
        UnbalancedEntryError: debits != credits.
    """
    for line in lines:
        if line.debit < ZERO or line.credit < ZERO:
            raise InvalidJournalLineError(line.line_seq, "amounts must be non-negative")
        if (line.debit > ZERO) == (line.credit > ZERO):
            raise InvalidJournalLineError(
                line.line_seq, "exactly one of debit or credit must be nonzero"
            )
    debits = sum((line.debit for line in lines), ZERO)
    credits = sum((line.credit for line in lines), ZERO)
    if debits != credits:
        raise UnbalancedEntryError(debits, credits)


def describe_order(order: Order) -> str:
    items = ", ".join(order.item_names())
    if order.kind == OrderKind.SALE:
        return f"Sale & COGS: {order.counterparty.name} - {items}"
    return f"Purchase: {order.counterparty.name} - {items}"


class PostingEngine:
    """
    Computes the journal for an order.

    Contract:
        Deterministic: the same order and mapping always produce the same
        JournalDraft, lines in the order shown in the module docstring.

    Non-goals:
        - Does NOT persist anything (see services.journal_writer).
        - Does NOT check stock (see services.inventory_synchronizer).
    """

    def __init__(self, account_mapping: AccountMapping):
        self._mapping = account_mapping

    @property
    def account_mapping(self) -> AccountMapping:
        return self._mapping

    def resolve_roles(self, order: Order) -> dict[AccountRole, UUID]:
        """Resolve every role the order needs; raises on the first unmapped one."""
        return self._mapping.resolve_all(required_roles(order.kind, order.payment_method))

    def _legs(self, order: Order) -> list[tuple[AccountRole, LineSide, Decimal]]:
        settle = payment_role(order.kind, order.payment_method)
        if order.kind == OrderKind.SALE:
            revenue = order.total()
            cogs = order.cost_total()
            return [
                (settle, LineSide.DEBIT, revenue),
                (AccountRole.SALES, LineSide.CREDIT, revenue),
                (AccountRole.COGS, LineSide.DEBIT, cogs),
                (AccountRole.INVENTORY, LineSide.CREDIT, cogs),
            ]
        cost = order.total()
        return [
            (AccountRole.INVENTORY, LineSide.DEBIT, cost),
            (settle, LineSide.CREDIT, cost),
        ]

    def build_entry(self, order: Order) -> JournalDraft:
        if not order.lines:
            raise EmptyOrderError()

        accounts = self.resolve_roles(order)

        merged: dict[tuple[UUID, LineSide], list] = {}
        for role, side, amount in self._legs(order):
            if amount == ZERO:
                continue
            key = (accounts[role], side)
            if key in merged:
                merged[key][1] += amount
            else:
                merged[key] = [role, amount]

        if not merged:
            raise EmptyOrderError("Order produces no nonzero journal legs")

        lines = tuple(
            DraftLine(
                account_id=account_id,
                debit=amount if side == LineSide.DEBIT else ZERO,
                credit=amount if side == LineSide.CREDIT else ZERO,
                line_seq=seq,
                role=role,
            )
            for seq, ((account_id, side), (role, amount)) in enumerate(merged.items(), start=1)
        )
        validate_lines(lines)

        return JournalDraft(
            description=describe_order(order),
            source=order.kind.value,
            idempotency_key=order.idempotency_key,
            lines=lines,
        )
