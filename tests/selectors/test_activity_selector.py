"""Tests for the inventory movement log and the journal log."""

from uuid import uuid4

import pytest

from inventory_kernel.domain.dtos import CounterpartyRef
from inventory_kernel.domain.order import OrderBuilder
from inventory_kernel.selectors.activity_selector import ActivitySelector


@pytest.fixture
def history(sql_store, submission_service, deterministic_clock, create_item, customer, supplier):
    """Three orders one hour apart: purchase, sale to Acme, sale to Bolt."""
    widget = create_item(name="Widget", quantity=0, cost_price="4", selling_price="10")
    gadget = create_item(name="Gadget", quantity=5, cost_price="8", selling_price="15")
    bolt = CounterpartyRef(id=uuid4(), name="Bolt Hardware")

    orders = [
        ("purchase", supplier, [(widget, 10)]),
        ("sale", customer, [(widget, 2), (gadget, 1)]),
        ("sale", bolt, [(widget, 3)]),
    ]
    results = []
    for kind, party, lines in orders:
        builder = OrderBuilder(kind).select_counterparty(party).select_payment_method("cash")
        for item, quantity in lines:
            builder.add_line(sql_store.get_item(item.id), quantity)
        results.append(builder.submit(submission_service.submit))
        deterministic_clock.advance(3600)
    return {"widget": widget, "gadget": gadget, "results": results}


class TestInventoryMovements:
    def test_newest_first(self, session, history):
        movements = ActivitySelector(session).inventory_movements()

        summary = [(m.entity_name, m.item_name, m.quantity) for m in movements]
        assert summary[0] == ("Bolt Hardware", "Widget", 3)
        assert set(summary[1:3]) == {("Acme Retail", "Widget", 2), ("Acme Retail", "Gadget", 1)}
        assert summary[3] == ("Northwind Supply", "Widget", 10)
        assert movements[0].type == "sale"
        assert movements[-1].type == "purchase"

    def test_search_is_case_insensitive(self, session, history):
        movements = ActivitySelector(session).inventory_movements(search="acme")

        assert {m.entity_name for m in movements} == {"Acme Retail"}
        assert len(movements) == 2

    def test_wildcards_in_search_are_literal(self, session, sql_store, submission_service, history):
        cotton = CounterpartyRef(id=uuid4(), name="100% Cotton Co")
        builder = OrderBuilder("sale").select_counterparty(cotton).select_payment_method("cash")
        builder.add_line(sql_store.get_item(history["gadget"].id), 1)
        builder.submit(submission_service.submit)
        selector = ActivitySelector(session)

        assert [m.entity_name for m in selector.inventory_movements(search="%")] == ["100% Cotton Co"]
        assert selector.inventory_movements(search="_") == []
        assert len(selector.inventory_movements(search="0% c")) == 1

    def test_limit(self, session, history):
        assert len(ActivitySelector(session).inventory_movements(limit=1)) == 1

    def test_item_history(self, session, history):
        records = ActivitySelector(session).item_history(history["gadget"].id)

        assert [(r.type, r.quantity) for r in records] == [("sale", 1)]
        assert records[0].item_sku == history["gadget"].sku


class TestJournalLog:
    def test_entries_with_lines(self, session, history):
        log = ActivitySelector(session).journal_log()

        assert [entry.source for entry in log] == ["sale", "sale", "purchase"]
        assert log[0].description == "Sale & COGS: Bolt Hardware - Widget"
        assert {line.account_name for line in log[-1].lines} == {"Inventory", "Cash"}
        for entry in log:
            assert entry.total_debits == entry.total_credits

    def test_search_on_description(self, session, history):
        log = ActivitySelector(session).journal_log(search="purchase")

        assert len(log) == 1
        assert log[0].id == history["results"][0].entry_id

    def test_underscore_is_not_a_wildcard(self, session, history):
        assert ActivitySelector(session).journal_log(search="_") == []
        assert ActivitySelector(session).journal_log(search="S_le") == []

    def test_single_entry(self, session, history):
        entry_id = history["results"][1].entry_id

        entry = ActivitySelector(session).journal_entry(entry_id)

        assert entry.id == entry_id
        assert len(entry.lines) == 4
        assert ActivitySelector(session).journal_entry(uuid4()) is None
