"""
Module: inventory_kernel.models.party
Responsibility: ORM persistence for counterparties: customers (sale orders)
    and suppliers (purchase orders).
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase


class _PartyColumns:
    """Contact columns shared by customers and suppliers."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    address: Mapped[str | None] = mapped_column(Text, nullable=True)


class Customer(_PartyColumns, TrackedBase):
    """Counterparty for sale orders."""

    __tablename__ = "customers"

    def __repr__(self) -> str:
        return f"<Customer {self.name}>"


class Supplier(_PartyColumns, TrackedBase):
    """Counterparty for purchase orders."""

    __tablename__ = "suppliers"

    def __repr__(self) -> str:
        return f"<Supplier {self.name}>"
