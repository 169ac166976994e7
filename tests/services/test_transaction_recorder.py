"""Tests for the inventory activity log writer."""

from uuid import uuid4

from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.order import OrderBuilder
from inventory_kernel.services.memory_store import MemoryLedgerStore
from inventory_kernel.services.transaction_recorder import TransactionRecorder
from inventory_kernel.services.unit_of_work import UnitOfWork


def setup_order(store):
    widget = store.add_item("Widget", "WID", quantity=10)
    gadget = store.add_item("Gadget", "GAD", quantity=10)
    supplier = store.add_supplier("Northwind Supply")
    builder = OrderBuilder("purchase").select_counterparty(supplier).select_payment_method("credit")
    builder.add_line(widget, 3, "1").add_line(gadget, 2, "1")
    return builder.build()


class TestTransactionRecorder:
    def test_one_record_per_line(self):
        store = MemoryLedgerStore()
        clock = DeterministicClock()
        order = setup_order(store)
        entry_id = uuid4()

        ids = TransactionRecorder(store, clock).record(order, entry_id, UnitOfWork(store, "test"))

        records = store.list_transactions_for_entry(entry_id)
        assert tuple(r.id for r in records) == ids
        assert [(r.item_name, r.quantity, r.line_no) for r in records] == [
            ("Widget", 3, 1),
            ("Gadget", 2, 2),
        ]
        assert {r.type for r in records} == {"purchase"}
        assert {r.entity_name for r in records} == {"Northwind Supply"}
        assert {r.occurred_at for r in records} == {clock.now()}

    def test_rerun_for_same_entry_writes_nothing(self, captured_logs):
        store = MemoryLedgerStore()
        order = setup_order(store)
        entry_id = uuid4()
        recorder = TransactionRecorder(store, DeterministicClock())
        first = recorder.record(order, entry_id, UnitOfWork(store, "test"))

        second = recorder.record(order, entry_id, UnitOfWork(store, "test"))

        assert second == first
        assert len(store.list_transactions()) == 2
        assert any(r["message"] == "transactions_already_recorded" for r in captured_logs())

    def test_compensation_deletes_records(self):
        store = MemoryLedgerStore()
        order = setup_order(store)
        uow = UnitOfWork(store, "test")
        TransactionRecorder(store).record(order, uuid4(), uow)

        assert uow.completed_steps == ("insert_transaction:1", "insert_transaction:2")
        uow.abort(RuntimeError("boom"))

        assert store.list_transactions() == []
