"""Tests for UnitOfWork error mapping."""

from datetime import datetime, timezone

import pytest

from inventory_kernel.exceptions import (
    CompensationFailedError,
    DuplicateSubmissionError,
    InsufficientStockError,
    PartialCommitError,
    PersistenceError,
    StockShortfall,
)
from inventory_kernel.services.memory_store import MemoryLedgerStore
from inventory_kernel.services.unit_of_work import UnitOfWork


class RollbackStore(MemoryLedgerStore):
    supports_transactions = True

    def __init__(self, fail_rollback=False):
        super().__init__()
        self.fail_rollback = fail_rollback
        self.rollbacks = 0

    def rollback(self):
        self.rollbacks += 1
        if self.fail_rollback:
            raise PersistenceError("rollback", "connection lost")


class TestSaga:
    def test_compensations_run_in_reverse(self):
        calls = []
        uow = UnitOfWork(MemoryLedgerStore(), "test")
        uow.record("first", lambda: calls.append("first"))
        uow.record("middle")
        uow.record("last", lambda: calls.append("last"))

        uow.abort(RuntimeError("boom"))

        assert calls == ["last", "first"]

    def test_failing_compensation_does_not_stop_the_rest(self):
        calls = []

        def broken():
            raise PersistenceError("delete_journal_entry", "gone")

        uow = UnitOfWork(MemoryLedgerStore(), "test")
        uow.record("first", lambda: calls.append("first"))
        uow.record("second", broken)

        failure = uow.abort(PersistenceError("insert_transaction", "disk full"))

        assert calls == ["first"]
        assert isinstance(failure, CompensationFailedError)
        assert failure.failed_compensations == ("second",)
        assert failure.completed_steps == ("first", "second")
        assert failure.failed_step == "insert_transaction"


class TestErrorMapping:
    def test_persistence_error_after_writes_becomes_partial_commit(self):
        uow = UnitOfWork(MemoryLedgerStore(), "test")
        uow.record("create_journal_entry")
        error = PersistenceError("insert_journal_lines", "constraint")

        failure = uow.abort(error)

        assert type(failure) is PartialCommitError
        assert failure.completed_steps == ("create_journal_entry",)
        assert failure.failed_step == "insert_journal_lines"

    def test_persistence_error_before_writes_is_returned_as_is(self):
        error = PersistenceError("create_journal_entry", "constraint")

        assert UnitOfWork(MemoryLedgerStore(), "test").abort(error) is error

    def test_domain_error_is_returned_as_is(self):
        uow = UnitOfWork(MemoryLedgerStore(), "test")
        uow.record("create_journal_entry")
        error = InsufficientStockError([StockShortfall("x", 5, 1)])

        assert uow.abort(error) is error


class TestTransactionalStore:
    def test_rollback_replaces_compensations(self):
        calls = []
        store = RollbackStore()
        uow = UnitOfWork(store, "test")
        uow.record("create_journal_entry", lambda: calls.append("compensated"))

        uow.abort(PersistenceError("insert_journal_lines", "constraint"))

        assert store.rollbacks == 1
        assert calls == []

    def test_failed_rollback_is_fatal(self, captured_logs):
        uow = UnitOfWork(RollbackStore(fail_rollback=True), "submit_sale")

        failure = uow.abort(PersistenceError("insert_transaction", "disk full"))

        assert isinstance(failure, CompensationFailedError)
        assert failure.failed_compensations == ("rollback",)
        messages = [r["message"] for r in captured_logs() if r["level"] == "CRITICAL"]
        assert "rollback_failed" in messages
        assert "compensation_failed" in messages

    def test_commit_delegates_to_store(self):
        committed = []

        class CommitStore(MemoryLedgerStore):
            def commit(self):
                committed.append(True)

        UnitOfWork(CommitStore(), "test").commit()

        assert committed == [True]

    def test_commit_confirms_tracked_entries(self):
        store = MemoryLedgerStore()
        entry_id = store.create_journal_entry("Sale", "sale", "orders:sale:1", datetime.now(timezone.utc))
        uow = UnitOfWork(store, "test")
        uow.record("create_journal_entry", lambda: store.delete_journal_entry(entry_id))
        uow.track_entry(entry_id)

        with pytest.raises(DuplicateSubmissionError):
            store.find_journal_entry_by_key("orders:sale:1")
        uow.commit()

        assert store.find_journal_entry_by_key("orders:sale:1").id == entry_id


class TestAbortIsNotRaised:
    def test_caller_raises_what_abort_returns(self):
        uow = UnitOfWork(MemoryLedgerStore(), "test")
        uow.record("create_journal_entry")

        with pytest.raises(PartialCommitError):
            try:
                raise PersistenceError("insert_journal_lines", "constraint")
            except PersistenceError as exc:
                raise uow.abort(exc) from exc
