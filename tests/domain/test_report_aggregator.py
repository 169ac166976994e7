"""
Tests for ReportAggregator.

net_profit == revenue - cogs must hold regardless of which accounts the
balances come from.
"""

from decimal import Decimal
from uuid import uuid4

from inventory_kernel.domain.account_mapping import AccountMapping, AccountRole
from inventory_kernel.domain.dtos import AccountBalance, AccountType
from inventory_kernel.domain.reports import ReportAggregator


def balance(name, account_type, debit="0", credit="0", code="X"):
    return AccountBalance(
        account_id=uuid4(),
        code=code,
        name=name,
        account_type=AccountType(account_type),
        debit_total=Decimal(debit),
        credit_total=Decimal(credit),
    )


def standard_balances():
    return [
        balance("Cash", "asset", debit="50", credit="20", code="1000"),
        balance("Accounts Receivable", "asset", debit="30", code="1100"),
        balance("Inventory", "asset", debit="40", credit="48", code="1200"),
        balance("Accounts Payable", "liability", credit="40", code="2000"),
        balance("Sales", "revenue", credit="80", code="4000"),
        balance("Cost of Goods Sold", "expense", debit="48", code="5000"),
    ]


class TestAccountBalanceSign:
    def test_debit_normal(self):
        assert balance("Cash", "asset", debit="50", credit="20").balance == Decimal("30")

    def test_credit_normal(self):
        assert balance("Sales", "revenue", debit="5", credit="80").balance == Decimal("75")


class TestSummary:
    def test_summary_by_conventional_names(self):
        summary = ReportAggregator().summarize(standard_balances())

        assert summary.revenue == Decimal("80")
        assert summary.cogs == Decimal("48")
        assert summary.net_profit == Decimal("32")
        assert summary.receivables == Decimal("30")
        assert summary.payables == Decimal("40")
        assert summary.cash == Decimal("30")

    def test_revenue_sums_every_revenue_account(self):
        balances = standard_balances() + [balance("Service Income", "revenue", credit="5")]

        summary = ReportAggregator().summarize(balances)

        assert summary.revenue == Decimal("85")
        assert summary.net_profit == summary.revenue - summary.cogs

    def test_mapping_overrides_names(self):
        """A renamed cash account is still found through the mapping."""
        balances = standard_balances()
        till = balance("Till", "asset", debit="7", code="1010")
        balances.append(till)
        mapping = AccountMapping(bindings={AccountRole.CASH: till.account_id})

        summary = ReportAggregator(mapping).summarize(balances)

        assert summary.cash == Decimal("7")
        # unmapped roles fall back to conventional names
        assert summary.payables == Decimal("40")

    def test_empty_ledger(self):
        summary = ReportAggregator().summarize([])

        assert summary.revenue == summary.cogs == summary.net_profit == Decimal("0")
        assert summary.cash == Decimal("0")
