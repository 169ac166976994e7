"""
End-to-end submission tests against the SQL Ledger Store.

Each scenario checks all three outputs of a submission together: the
journal entry, the stock quantities and the inventory activity log.
"""

from dataclasses import replace
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from inventory_kernel.domain.account_mapping import AccountMapping, AccountRole
from inventory_kernel.domain.order import OrderBuilder, OrderState
from inventory_kernel.exceptions import (
    InsufficientStockError,
    MissingAccountMappingError,
    SessionInactiveError,
    UnknownAccountError,
)
from inventory_kernel.models.journal import JournalEntry
from inventory_kernel.models.transaction import InventoryTransaction
from inventory_kernel.services.order_submission import (
    OrderSubmissionService,
    SubmissionStatus,
)


def build_order(kind, party, item, quantity, method="cash", unit_price=None):
    builder = OrderBuilder(kind).select_counterparty(party).select_payment_method(method)
    builder.add_line(item, quantity, unit_price)
    return builder.build()


def legs_by_account(entry) -> dict[str, tuple[Decimal, Decimal]]:
    return {line.account_name: (line.debit, line.credit) for line in entry.lines}


def entry_count(session) -> int:
    return session.scalar(select(func.count()).select_from(JournalEntry))


def transaction_count(session) -> int:
    return session.scalar(select(func.count()).select_from(InventoryTransaction))


class TestCashSale:
    """Sell 5 @ 10, cost 6, cash."""

    def test_posts_journal_stock_and_log(self, session, sql_store, submission_service, create_item, customer):
        item = create_item(quantity=20, cost_price="6", selling_price="10")
        order = build_order("sale", customer, item, 5)

        result = submission_service.submit(order)

        assert result.status == SubmissionStatus.POSTED
        assert result.is_new
        assert result.revenue == Decimal("50")
        assert result.cost == Decimal("30")

        entry = sql_store.find_journal_entry_by_key(order.idempotency_key)
        assert entry.id == result.entry_id
        assert entry.source == "sale"
        assert legs_by_account(entry) == {
            "Cash": (Decimal("50"), Decimal("0")),
            "Sales": (Decimal("0"), Decimal("50")),
            "Cost of Goods Sold": (Decimal("30"), Decimal("0")),
            "Inventory": (Decimal("0"), Decimal("30")),
        }

        assert sql_store.get_item(item.id).quantity == 15

        records = sql_store.list_transactions_for_entry(result.entry_id)
        assert [(r.type, r.quantity, r.entity_name, r.line_no) for r in records] == [
            ("sale", 5, "Acme Retail", 1)
        ]
        assert result.transaction_ids == tuple(r.id for r in records)

    def test_credit_sale_debits_receivable(self, sql_store, submission_service, create_item, customer):
        item = create_item(quantity=10)
        order = build_order("sale", customer, item, 2, method="credit")

        submission_service.submit(order)

        entry = sql_store.find_journal_entry_by_key(order.idempotency_key)
        assert legs_by_account(entry)["Accounts Receivable"] == (Decimal("20"), Decimal("0"))
        assert "Cash" not in legs_by_account(entry)

    def test_multi_line_sale_aggregates_stock(self, sql_store, submission_service, create_item, customer):
        item = create_item(quantity=10)
        builder = OrderBuilder("sale").select_counterparty(customer).select_payment_method("cash")
        builder.add_line(item, 3).add_line(item, 4, "12")

        result = builder.submit(submission_service.submit)

        assert sql_store.get_item(item.id).quantity == 3
        assert [i.quantity for i in sql_store.list_items()] == [3]
        assert result.revenue == Decimal("78")
        assert len(result.transaction_ids) == 2


class TestCreditPurchase:
    """Purchase 10 @ 4 on credit."""

    def test_posts_inventory_and_payable(self, sql_store, submission_service, create_item, supplier):
        item = create_item(quantity=0, cost_price="3")
        order = build_order("purchase", supplier, item, 10, method="credit", unit_price="4")

        result = submission_service.submit(order)

        entry = sql_store.find_journal_entry_by_key(order.idempotency_key)
        assert legs_by_account(entry) == {
            "Inventory": (Decimal("40"), Decimal("0")),
            "Accounts Payable": (Decimal("0"), Decimal("40")),
        }
        assert result.revenue == Decimal("0")
        assert result.cost == Decimal("40")

        stored = sql_store.get_item(item.id)
        assert stored.quantity == 10
        assert stored.cost_price == Decimal("4")

        records = sql_store.list_transactions_for_entry(result.entry_id)
        assert [(r.type, r.quantity, r.entity_name) for r in records] == [
            ("purchase", 10, "Northwind Supply")
        ]

    def test_last_line_price_becomes_cost(self, sql_store, submission_service, create_item, supplier):
        item = create_item(quantity=0, cost_price="3")
        builder = OrderBuilder("purchase").select_counterparty(supplier).select_payment_method("cash")
        builder.add_line(item, 2, "4").add_line(item, 1, "5")

        builder.submit(submission_service.submit)

        assert sql_store.get_item(item.id).cost_price == Decimal("5")


class TestInsufficientStock:
    def test_oversell_is_refused_without_writes(self, session, sql_store, submission_service, create_item, customer):
        """Sell 8 with 5 on hand."""
        item = create_item(quantity=5)
        # builder saw a stale, larger quantity
        order = build_order("sale", customer, replace(item, quantity=50), 8)

        with pytest.raises(InsufficientStockError) as exc_info:
            submission_service.submit(order)

        assert exc_info.value.requested == 8
        assert exc_info.value.available == 5
        assert sql_store.get_item(item.id).quantity == 5
        assert entry_count(session) == 0
        assert transaction_count(session) == 0

    def test_every_shortfall_is_reported(self, session, sql_store, submission_service, create_item, customer):
        short_a = create_item(name="Alpha", quantity=1)
        short_b = create_item(name="Beta", quantity=0)
        plenty = create_item(name="Gamma", quantity=100)
        builder = OrderBuilder("sale").select_counterparty(customer).select_payment_method("cash")
        builder.add_line(replace(short_a, quantity=10), 2)
        builder.add_line(replace(short_b, quantity=10), 3)
        builder.add_line(plenty, 1)

        with pytest.raises(InsufficientStockError) as exc_info:
            builder.submit(submission_service.submit)

        assert {s.item_id for s in exc_info.value.shortfalls} == {str(short_a.id), str(short_b.id)}
        assert sql_store.get_item(plenty.id).quantity == 100
        assert builder.state == OrderState.REJECTED
        assert entry_count(session) == 0

    def test_second_of_two_sales_is_refused(self, session, sql_store, submission_service, create_item, customer):
        """Two orders of 3 against 4 on hand: one posts, one is refused."""
        item = create_item(quantity=4)
        first = build_order("sale", customer, item, 3)
        second = build_order("sale", customer, item, 3)

        assert submission_service.submit(first).status == SubmissionStatus.POSTED
        with pytest.raises(InsufficientStockError):
            submission_service.submit(second)

        assert sql_store.get_item(item.id).quantity == 1
        assert entry_count(session) == 1


class TestIdempotency:
    def test_resubmission_returns_already_posted(self, session, sql_store, submission_service, create_item, customer):
        item = create_item(quantity=10)
        order = build_order("sale", customer, item, 2)

        first = submission_service.submit(order)
        second = submission_service.submit(order)

        assert second.status == SubmissionStatus.ALREADY_POSTED
        assert not second.is_new
        assert second.entry_id == first.entry_id
        assert second.transaction_ids == first.transaction_ids
        assert sql_store.get_item(item.id).quantity == 8
        assert entry_count(session) == 1
        assert transaction_count(session) == 1


class TestPreconditions:
    def test_unmapped_role_fails_before_writes(self, session, sql_store, standard_accounts, create_item, customer):
        bindings = {role: account.id for role, account in standard_accounts.items()}
        del bindings[AccountRole.COGS]
        service = OrderSubmissionService(sql_store, AccountMapping(bindings=bindings))
        item = create_item(quantity=10)

        with pytest.raises(MissingAccountMappingError):
            service.submit(build_order("sale", customer, item, 1))

        assert sql_store.get_item(item.id).quantity == 10
        assert entry_count(session) == 0

    def test_inactive_account_fails_before_writes(self, session, sql_store, standard_accounts, submission_service, create_item, customer):
        standard_accounts[AccountRole.SALES].is_active = False
        session.commit()
        item = create_item(quantity=10)

        with pytest.raises(UnknownAccountError) as exc_info:
            submission_service.submit(build_order("sale", customer, item, 1))

        assert exc_info.value.role == "sales"
        assert sql_store.get_item(item.id).quantity == 10
        assert entry_count(session) == 0

    def test_mapping_provider_resolved_per_submission(self, sql_store, account_mapping, create_item, customer):
        calls = []

        def provider():
            calls.append(1)
            return account_mapping

        service = OrderSubmissionService(sql_store, provider)
        item = create_item(quantity=10)

        service.submit(build_order("sale", customer, item, 1))
        service.submit(build_order("sale", customer, item, 1))

        assert len(calls) == 2

    def test_inactive_session_is_refused(self, session, sql_store, account_mapping, create_item, customer):
        service = OrderSubmissionService(sql_store, account_mapping, session_active=lambda: False)
        item = create_item(quantity=10)

        with pytest.raises(SessionInactiveError):
            service.submit(build_order("sale", customer, item, 1))

        assert entry_count(session) == 0


class TestSubmissionLogging:
    def test_lifecycle_events(self, captured_logs, submission_service, create_item, customer):
        item = create_item(quantity=10)
        order = build_order("sale", customer, item, 1)

        result = submission_service.submit(order)

        records = captured_logs()
        messages = [r["message"] for r in records]
        for event in (
            "order_submission_started",
            "balance_validated",
            "journal_entry_written",
            "stock_updated",
            "transactions_recorded",
            "order_submission_completed",
        ):
            assert event in messages
        completed = next(r for r in records if r["message"] == "order_submission_completed")
        assert completed["order_key"] == str(order.order_key)
        assert completed["entry_id"] == str(result.entry_id)
        assert completed["status"] == "posted"
        assert completed["producer"] == "orders"

    def test_failure_is_logged_with_code(self, captured_logs, submission_service, create_item, customer):
        item = create_item(quantity=1)

        with pytest.raises(InsufficientStockError):
            submission_service.submit(build_order("sale", customer, replace(item, quantity=9), 5))

        failed = [r for r in captured_logs() if r["message"] == "order_submission_failed"]
        assert failed[0]["error_code"] == "INSUFFICIENT_STOCK"
        assert failed[0]["level"] == "ERROR"
