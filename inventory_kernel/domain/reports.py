"""
ReportAggregator -- financial summary over derived account balances.

Responsibility:
    Folds committed account balances into the headline figures shown on the
    reports page and dashboard: revenue, cost of goods sold, net profit,
    receivables, payables and cash.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  ReportSelector feeds
    it balances derived from journal lines.

Invariants enforced:
    - net_profit == revenue - cogs, where revenue is the sum of all
      revenue-type balances and cogs the sum of all expense-type balances.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from inventory_kernel.domain.account_mapping import AccountMapping, AccountRole
from inventory_kernel.domain.dtos import AccountBalance, AccountType

ZERO = Decimal("0")

# Fallback account names when no mapping is supplied
CONVENTIONAL_NAMES: dict[AccountRole, str] = {
    AccountRole.RECEIVABLE: "Accounts Receivable",
    AccountRole.PAYABLE: "Accounts Payable",
    AccountRole.CASH: "Cash",
}


@dataclass(frozen=True)
class FinancialSummary:
    revenue: Decimal
    cogs: Decimal
    net_profit: Decimal
    receivables: Decimal
    payables: Decimal
    cash: Decimal


class ReportAggregator:
    """
    Pure aggregation of account balances.

    Contract:
        Receivables, payables and cash come from the accounts the mapping
        binds to those roles.  Without a mapping (or for an unmapped role)
        the account with the conventional name is used instead.
    """

    def __init__(self, account_mapping: AccountMapping | None = None):
        self._mapping = account_mapping

    def _role_balance(self, role: AccountRole, balances: list[AccountBalance]) -> Decimal:
        account_id = self._mapping.account_id_for(role) if self._mapping else None
        if account_id is not None:
            matches = [b for b in balances if b.account_id == account_id]
        else:
            matches = [b for b in balances if b.name == CONVENTIONAL_NAMES[role]]
        return sum((b.balance for b in matches), ZERO)

    def summarize(self, balances: Iterable[AccountBalance]) -> FinancialSummary:
        balances = list(balances)
        revenue = sum(
            (b.balance for b in balances if b.account_type == AccountType.REVENUE), ZERO
        )
        cogs = sum(
            (b.balance for b in balances if b.account_type == AccountType.EXPENSE), ZERO
        )
        return FinancialSummary(
            revenue=revenue,
            cogs=cogs,
            net_profit=revenue - cogs,
            receivables=self._role_balance(AccountRole.RECEIVABLE, balances),
            payables=self._role_balance(AccountRole.PAYABLE, balances),
            cash=self._role_balance(AccountRole.CASH, balances),
        )
