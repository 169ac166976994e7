"""
Declarative base for the inventory ledger schema.

Tables built on it:
    accounts                  chart of accounts (Account)
    items                     stock items with quantity and prices (Item)
    customers, suppliers      counterparties named on orders (Customer, Supplier)
    journal_entries           one posted order or manual entry (JournalEntry)
    journal_lines             debit/credit legs of an entry (JournalLine)
    inventory_transactions    activity log, one row per order line (InventoryTransaction)

Every row gets a uuid4 primary key stored as String(36) so SQLite and
PostgreSQL share one schema, plus server-side created_at/updated_at stamps.
Nothing below models/ is imported here.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character string form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return str(value) if value is not None else None

    def process_result_value(self, value, dialect):
        return UUID(value) if value is not None else None


class Base(DeclarativeBase):
    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Adds created_at (set once) and updated_at (refreshed on UPDATE)."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
