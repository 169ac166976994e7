"""
Module: inventory_kernel.models.journal
Responsibility: ORM persistence for journal entries and journal lines -- the
    single source of financial truth in this system.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Idempotency key uniqueness (UNIQUE constraint on idempotency_key).  An
      order's key is written here, so a second submission of the same order
      can never create a second entry.
    - Balance (checked by JournalWriter before flush; exposed here via the
      is_balanced property for read-side assertions).
    - Exactly one side per line (CHECK constraints: both sides non-negative,
      exactly one of them nonzero).
    - Append-only (ORM listeners in db/immutability.py reject UPDATE/DELETE).

Failure modes:
    - IntegrityError on duplicate idempotency_key.
    - ImmutabilityViolationError on UPDATE/DELETE of a flushed entry or line.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from inventory_kernel.models.account import Account


class EntrySource(str, Enum):
    """What produced a journal entry."""

    SALE = "sale"
    PURCHASE = "purchase"
    MANUAL = "manual"


class JournalEntry(TrackedBase):
    """
    One balanced double-entry posting.

    Contract:
        Created once per submitted order (or manual journal), together with
        its lines, inside the submission's unit of work.  Never updated or
        deleted afterwards.

    Guarantees:
        - idempotency_key, when present, is unique.
        - lines are ordered by line_seq.
    """

    __tablename__ = "journal_entries"
    __table_args__ = (
        UniqueConstraint("idempotency_key", name="uq_journal_idempotency"),
        Index("idx_journal_posted_at", "posted_at"),
    )

    description: Mapped[str] = mapped_column(String(1000), nullable=False)

    source: Mapped[EntrySource] = mapped_column(String(20), nullable=False)

    idempotency_key: Mapped[str | None] = mapped_column(String(255), nullable=True)

    posted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        order_by="JournalLine.line_seq",
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.id}: {self.description}>"

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


class JournalLine(TrackedBase):
    """
    One leg of a journal entry.

    Guarantees:
        - debit >= 0, credit >= 0, exactly one of them nonzero.
        - (entry_id, line_seq) is unique.
    """

    __tablename__ = "journal_lines"
    __table_args__ = (
        UniqueConstraint("entry_id", "line_seq", name="uq_journal_line_seq"),
        CheckConstraint("debit >= 0", name="ck_line_debit_non_negative"),
        CheckConstraint("credit >= 0", name="ck_line_credit_non_negative"),
        CheckConstraint(
            "(debit > 0 AND credit = 0) OR (credit > 0 AND debit = 0)",
            name="ck_line_single_side",
        ),
        Index("idx_line_entry", "entry_id"),
        Index("idx_line_account", "account_id"),
    )

    entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    debit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0")
    )

    credit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0")
    )

    line_seq: Mapped[int] = mapped_column(BigInteger, nullable=False)

    memo: Mapped[str | None] = mapped_column(String(500), nullable=True)

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")

    account: Mapped["Account"] = relationship(back_populates="journal_lines")

    def __repr__(self) -> str:
        side = f"Dr {self.debit}" if self.debit else f"Cr {self.credit}"
        return f"<JournalLine {self.line_seq}: {self.account_id} {side}>"
