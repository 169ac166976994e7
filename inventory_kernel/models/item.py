"""
Module: inventory_kernel.models.item
Responsibility: ORM persistence for stocked items.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - quantity >= 0 (CHECK constraint ck_item_quantity_non_negative).  This is
      the last line of defence behind the synchronizer's compare-and-swap.
    - sku is unique.
    - quantity is written only by InventorySynchronizer (through the store's
      compare-and-swap); MasterDataService refuses to change it.

Failure modes:
    - IntegrityError if an UPDATE would take quantity below zero.
"""

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, CheckConstraint, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from inventory_kernel.models.transaction import InventoryTransaction


class Item(TrackedBase):
    """
    A stocked item with prices and a shipment threshold.

    Contract:
        cost_price is the most recent acquisition cost; sale lines copy it
        into their cost basis at add time.  selling_price is the default unit
        price for sale lines.
    """

    __tablename__ = "items"
    __table_args__ = (
        UniqueConstraint("sku", name="uq_item_sku"),
        CheckConstraint("quantity >= 0", name="ck_item_quantity_non_negative"),
        CheckConstraint("cost_price >= 0", name="ck_item_cost_price_non_negative"),
        CheckConstraint("selling_price >= 0", name="ck_item_selling_price_non_negative"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    sku: Mapped[str] = mapped_column(String(50), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    uom: Mapped[str] = mapped_column(String(20), nullable=False, default="pcs")

    quantity: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    cost_price: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0")
    )

    selling_price: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0")
    )

    shipment_threshold: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    transactions: Mapped[list["InventoryTransaction"]] = relationship(
        back_populates="item",
        lazy="dynamic",
    )

    def __repr__(self) -> str:
        return f"<Item {self.sku}: {self.name} qty={self.quantity}>"
