"""
UnitOfWork -- all-or-nothing execution of several Ledger Store writes.

Responsibility:
    Tracks which writes of one submission have completed and, on failure,
    undoes them: by rolling back the database transaction when the store
    supports transactions, or by running registered compensations in reverse
    order when it does not (saga).  Maps the original failure to the error
    the caller should see.

Architecture position:
    Kernel > Services -- imperative shell.  Used by OrderSubmissionService
    and by JournalWriter.post_manual_entry.

Error mapping on abort:

    rollback / any compensation fails          -> CompensationFailedError (CRITICAL log)
    PersistenceError after >= 1 completed write -> PartialCommitError
    anything else                               -> the original exception

Failure modes:
    - CompensationFailedError is FATAL: ledger and stock may disagree.  It is
      logged at CRITICAL with every compensation that failed and is always
      raised, never swallowed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

from inventory_kernel.exceptions import (
    CompensationFailedError,
    PartialCommitError,
    PersistenceError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.ledger_store import LedgerStore

logger = get_logger("services.unit_of_work")


@dataclass(frozen=True)
class _Step:
    name: str
    compensation: Callable[[], None] | None


class UnitOfWork:
    """
    One submission's writes.

    Contract:
        Call ``record(step, compensation)`` after every successful write,
        ``commit()`` when all writes are done, and ``abort(exc)`` from the
        failure handler; raise what ``abort`` returns.  Journal entries
        passed to ``track_entry`` are confirmed with the store on commit.
    """

    def __init__(self, store: LedgerStore, operation: str):
        self._store = store
        self._operation = operation
        self._steps: list[_Step] = []
        self._entry_ids: list[UUID] = []

    @property
    def completed_steps(self) -> tuple[str, ...]:
        return tuple(step.name for step in self._steps)

    def record(self, step: str, compensation: Callable[[], None] | None = None) -> None:
        self._steps.append(_Step(step, compensation))
        logger.debug(
            "unit_of_work_step_completed",
            extra={"operation": self._operation, "step": step},
        )

    def track_entry(self, entry_id: UUID) -> None:
        self._entry_ids.append(entry_id)

    def commit(self) -> None:
        self._store.commit()
        for entry_id in self._entry_ids:
            self._store.confirm_journal_entry(entry_id)
        logger.debug(
            "unit_of_work_committed",
            extra={"operation": self._operation, "steps": list(self.completed_steps)},
        )

    def _compensate(self) -> tuple[str, ...]:
        failed: list[str] = []
        for step in reversed(self._steps):
            if step.compensation is None:
                continue
            try:
                step.compensation()
            except Exception:
                # Keep undoing the remaining steps; the failure is reported below.
                logger.critical(
                    "compensation_step_failed",
                    extra={"operation": self._operation, "step": step.name},
                    exc_info=True,
                )
                failed.append(step.name)
        return tuple(failed)

    def abort(self, exc: BaseException) -> BaseException:
        """Undo completed writes and return the exception to raise."""
        completed = self.completed_steps
        failed_step = getattr(exc, "operation", None) or type(exc).__name__

        if self._store.supports_transactions:
            try:
                self._store.rollback()
                failed: tuple[str, ...] = ()
            except Exception:
                logger.critical(
                    "rollback_failed",
                    extra={"operation": self._operation},
                    exc_info=True,
                )
                failed = ("rollback",)
        else:
            failed = self._compensate()

        if failed:
            logger.critical(
                "compensation_failed",
                extra={
                    "operation": self._operation,
                    "completed_steps": list(completed),
                    "failed_step": failed_step,
                    "failed_compensations": list(failed),
                },
            )
            return CompensationFailedError(completed, failed_step, str(exc), failed)

        logger.warning(
            "unit_of_work_rolled_back",
            extra={
                "operation": self._operation,
                "completed_steps": list(completed),
                "failed_step": failed_step,
                "error_code": getattr(exc, "code", None),
            },
        )
        if isinstance(exc, PersistenceError) and completed:
            return PartialCommitError(completed, failed_step, str(exc))
        return exc
