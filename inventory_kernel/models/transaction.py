"""
Module: inventory_kernel.models.transaction
Responsibility: ORM persistence for the inventory activity log -- one row per
    order line that moved stock.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One row per (journal_entry_id, line_no): a re-run of the recorder for
      an entry that already has rows cannot double-log.
    - Append-only (ORM listeners in db/immutability.py).
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from inventory_kernel.models.item import Item


class TransactionType(str, Enum):
    SALE = "sale"
    PURCHASE = "purchase"


class InventoryTransaction(TrackedBase):
    """
    Audit record of one stock movement.

    Contract:
        entity_name is the counterparty's name at submission time, copied so
        that renaming a customer does not rewrite history.
    """

    __tablename__ = "inventory_transactions"
    __table_args__ = (
        UniqueConstraint("journal_entry_id", "line_no", name="uq_transaction_entry_line"),
        CheckConstraint("quantity > 0", name="ck_transaction_quantity_positive"),
        Index("idx_transaction_item", "item_id"),
        Index("idx_transaction_occurred_at", "occurred_at"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("items.id"),
        nullable=False,
    )

    type: Mapped[TransactionType] = mapped_column(String(20), nullable=False)

    quantity: Mapped[int] = mapped_column(BigInteger, nullable=False)

    entity_name: Mapped[str] = mapped_column(String(255), nullable=False)

    journal_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
    )

    line_no: Mapped[int] = mapped_column(BigInteger, nullable=False, default=1)

    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    item: Mapped["Item"] = relationship(back_populates="transactions")

    def __repr__(self) -> str:
        return f"<InventoryTransaction {self.type} {self.item_id} x{self.quantity}>"
