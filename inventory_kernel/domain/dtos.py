"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable snapshots that cross the Ledger Store boundary:
    items, accounts, counterparties, derived account balances, and the
    records written for a submission (journal entries, journal lines,
    inventory transactions).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods exist as boundary converters but are only
    invoked from the service/selector layer (never from domain logic).

Invariants enforced:
    - Domain logic accepts and returns DTOs, never ORM entities.
    - Monetary fields are Decimal, never float.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from inventory_kernel.models.account import Account as AccountModel
    from inventory_kernel.models.item import Item as ItemModel
    from inventory_kernel.models.journal import JournalEntry as JournalEntryModel
    from inventory_kernel.models.transaction import (
        InventoryTransaction as InventoryTransactionModel,
    )


class AccountType(str, Enum):
    """Account classification used by posting and reporting."""

    ASSET = "asset"
    LIABILITY = "liability"
    REVENUE = "revenue"
    EXPENSE = "expense"

    @property
    def is_debit_normal(self) -> bool:
        return self in (AccountType.ASSET, AccountType.EXPENSE)


class OrderKind(str, Enum):
    SALE = "sale"
    PURCHASE = "purchase"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT = "credit"


class LineSide(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


@dataclass(frozen=True)
class ItemSnapshot:
    """Item as read from the store at one point in time."""

    id: UUID
    name: str
    sku: str
    quantity: int
    cost_price: Decimal
    selling_price: Decimal
    shipment_threshold: int = 0
    uom: str = "pcs"
    description: str | None = None

    @classmethod
    def from_model(cls, model: ItemModel) -> ItemSnapshot:
        return cls(
            id=model.id,
            name=model.name,
            sku=model.sku,
            quantity=int(model.quantity),
            cost_price=Decimal(model.cost_price),
            selling_price=Decimal(model.selling_price),
            shipment_threshold=int(model.shipment_threshold),
            uom=model.uom,
            description=model.description,
        )


@dataclass(frozen=True)
class AccountSnapshot:
    id: UUID
    code: str
    name: str
    account_type: AccountType
    is_active: bool = True

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountSnapshot:
        return cls(
            id=model.id,
            code=model.code,
            name=model.name,
            account_type=AccountType(model.account_type),
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class CounterpartyRef:
    """Customer or supplier selected for an order (id plus name snapshot)."""

    id: UUID
    name: str


@dataclass(frozen=True)
class AccountBalance:
    """
    Derived balance of one account.

    ``balance`` is signed by the account type's normal side:
    debit-normal accounts report debits minus credits, credit-normal
    accounts report credits minus debits.
    """

    account_id: UUID
    code: str
    name: str
    account_type: AccountType
    debit_total: Decimal
    credit_total: Decimal

    @property
    def balance(self) -> Decimal:
        if self.account_type.is_debit_normal:
            return self.debit_total - self.credit_total
        return self.credit_total - self.debit_total


@dataclass(frozen=True)
class JournalLineRecord:
    account_id: UUID
    debit: Decimal
    credit: Decimal
    line_seq: int
    memo: str | None = None
    account_name: str | None = None


@dataclass(frozen=True)
class JournalEntryRecord:
    """A persisted journal entry with its lines."""

    id: UUID
    description: str
    source: str
    idempotency_key: str | None
    posted_at: datetime
    lines: tuple[JournalLineRecord, ...] = ()

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0"))

    @classmethod
    def from_model(cls, model: JournalEntryModel) -> JournalEntryRecord:
        return cls(
            id=model.id,
            description=model.description,
            source=getattr(model.source, "value", model.source),
            idempotency_key=model.idempotency_key,
            posted_at=model.posted_at,
            lines=tuple(
                JournalLineRecord(
                    account_id=line.account_id,
                    debit=Decimal(line.debit),
                    credit=Decimal(line.credit),
                    line_seq=int(line.line_seq),
                    memo=line.memo,
                    account_name=line.account.name if line.account is not None else None,
                )
                for line in model.lines
            ),
        )


@dataclass(frozen=True)
class TransactionRecord:
    """One row of the inventory activity log."""

    id: UUID
    item_id: UUID
    type: str
    quantity: int
    entity_name: str
    journal_entry_id: UUID | None
    line_no: int
    occurred_at: datetime
    item_name: str | None = None
    item_sku: str | None = None

    @classmethod
    def from_model(cls, model: InventoryTransactionModel) -> TransactionRecord:
        item = model.item
        return cls(
            id=model.id,
            item_id=model.item_id,
            type=getattr(model.type, "value", model.type),
            quantity=int(model.quantity),
            entity_name=model.entity_name,
            journal_entry_id=model.journal_entry_id,
            line_no=int(model.line_no),
            occurred_at=model.occurred_at,
            item_name=item.name if item is not None else None,
            item_sku=item.sku if item is not None else None,
        )
