"""
JournalWriter -- persists balanced journal drafts.

Responsibility:
    Writes a JournalDraft (from PostingEngine) as one journal entry plus its
    lines, after re-validating balance and confirming that every target
    account exists and is active.  Also posts manual general-journal
    entries entered line by line.

Architecture position:
    Kernel > Services -- imperative shell.  Talks to the Ledger Store only.

Invariants enforced:
    - Balance is re-checked immediately before writing, independent of the
      PostingEngine's own check.
    - Every line targets an existing, active account.
    - Lines are written only after the entry exists; the entry's
      compensation (delete) also removes its lines.

Failure modes:
    - UnbalancedEntryError / InvalidJournalLineError before any write.
    - UnknownAccountError before any write.
    - DuplicateSubmissionError when the idempotency key already exists.
    - PersistenceError / PartialCommitError from the store (manual entries
      run in their own UnitOfWork).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID, uuid4

from inventory_kernel.db.types import money_from_value
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.posting import DraftLine, JournalDraft, validate_lines
from inventory_kernel.exceptions import UnknownAccountError, ValidationError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.journal import EntrySource
from inventory_kernel.services.ledger_store import LedgerStore, NewJournalLine
from inventory_kernel.services.unit_of_work import UnitOfWork
from inventory_kernel.utils.idempotency import generate_idempotency_key

logger = get_logger("services.journal_writer")


@dataclass(frozen=True)
class ManualLine:
    """One line of a manual journal entry as typed by the user."""

    account_id: UUID
    debit: Decimal | int | str = Decimal("0")
    credit: Decimal | int | str = Decimal("0")
    memo: str | None = None


class JournalWriter:
    """
    Writes journal entries through a LedgerStore.

    Contract:
        ``write()`` participates in the caller's UnitOfWork.
        ``post_manual_entry()`` owns its own UnitOfWork and commits.

    Non-goals:
        - Does NOT compute posting rules (see domain.posting).
    """

    def __init__(self, store: LedgerStore, clock: Clock | None = None):
        self._store = store
        self._clock = clock or SystemClock()

    def _check_accounts(self, lines: Sequence[DraftLine]) -> None:
        accounts = {account.id: account for account in self._store.list_accounts()}
        for line in lines:
            account = accounts.get(line.account_id)
            if account is None or not account.is_active:
                role = line.role.value if line.role is not None else None
                raise UnknownAccountError(str(line.account_id), role=role)

    def write(self, draft: JournalDraft, uow: UnitOfWork) -> UUID:
        """Persist ``draft``; returns the new entry id."""
        validate_lines(draft.lines)
        self._check_accounts(draft.lines)

        logger.info(
            "balance_validated",
            extra={
                "total_debits": str(draft.total_debits),
                "total_credits": str(draft.total_credits),
                "line_count": len(draft.lines),
            },
        )

        store = self._store
        entry_id = store.create_journal_entry(
            description=draft.description,
            source=draft.source,
            idempotency_key=draft.idempotency_key,
            posted_at=self._clock.now(),
        )
        uow.record("create_journal_entry", lambda: store.delete_journal_entry(entry_id))
        uow.track_entry(entry_id)

        store.insert_journal_lines(
            [
                NewJournalLine(
                    entry_id=entry_id,
                    account_id=line.account_id,
                    debit=line.debit,
                    credit=line.credit,
                    line_seq=line.line_seq,
                    memo=line.memo,
                )
                for line in draft.lines
            ]
        )
        # Undone together with the entry
        uow.record("insert_journal_lines")

        logger.info(
            "journal_entry_written",
            extra={
                "entry_id": str(entry_id),
                "source": draft.source,
                "description": draft.description,
                "amount": str(draft.total_debits),
            },
        )
        return entry_id

    def post_manual_entry(
        self,
        description: str,
        lines: Sequence[ManualLine],
        request_key: UUID | None = None,
    ) -> UUID:
        """
        Post a general-journal entry typed in by hand.

        Preconditions:
            - description is non-empty.
            - at least two lines, each with exactly one nonzero side.
            - debits equal credits.

        Args:
            request_key: Optional client-supplied key; posting the same key
                twice returns the first entry instead of posting again.

        Returns:
            The id of the (new or existing) journal entry.
        """
        if not description or not description.strip():
            raise ValidationError("Description is required", field="description")
        if len(lines) < 2:
            raise ValidationError("A journal entry needs at least two lines", field="lines")

        draft_lines = tuple(
            DraftLine(
                account_id=line.account_id,
                debit=money_from_value(line.debit, field="debit"),
                credit=money_from_value(line.credit, field="credit"),
                line_seq=seq,
                memo=line.memo,
            )
            for seq, line in enumerate(lines, start=1)
        )
        key = (
            generate_idempotency_key("journal", EntrySource.MANUAL.value, request_key)
            if request_key is not None
            else None
        )
        if key is not None:
            existing = self._store.find_journal_entry_by_key(key)
            if existing is not None:
                logger.info("manual_entry_already_posted", extra={"entry_id": str(existing.id)})
                return existing.id

        draft = JournalDraft(
            description=description.strip(),
            source=EntrySource.MANUAL.value,
            idempotency_key=key,
            lines=draft_lines,
        )

        with LogContext.bind(correlation_id=str(request_key or uuid4()), producer="journal"):
            uow = UnitOfWork(self._store, "manual_journal_entry")
            try:
                entry_id = self.write(draft, uow)
                uow.commit()
            except Exception as exc:
                failure = uow.abort(exc)
                if failure is exc:
                    raise
                raise failure from exc
        return entry_id
