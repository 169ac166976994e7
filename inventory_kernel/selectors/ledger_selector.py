"""
Module: inventory_kernel.selectors.ledger_selector
Responsibility: Read-only balance queries.  Account balances are a derived
    view over journal lines; there are no stored balances anywhere.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Double-entry balance verification via trial_balance().
    - Balances are signed by the account type's normal side (see
      AccountBalance.balance).

Failure modes:
    - Returns zero balances when no entries exist.
    - RecordNotFoundError from account_balance() for an unknown account.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.dtos import AccountBalance, AccountType
from inventory_kernel.exceptions import RecordNotFoundError
from inventory_kernel.models.account import Account
from inventory_kernel.models.journal import JournalLine
from inventory_kernel.selectors.base import BaseSelector

ZERO = Decimal("0")


@dataclass(frozen=True)
class TrialBalance:
    rows: tuple[AccountBalance, ...]
    total_debits: Decimal
    total_credits: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


def _decimal(value) -> Decimal:
    return ZERO if value is None else Decimal(value)


class LedgerSelector(BaseSelector[JournalLine]):
    """
    Selector for account balances.

    Guarantees:
        - Every account appears, including those without activity.
        - All amounts are Decimal (never float).
    """

    def _balance_query(self):
        return (
            select(
                Account.id,
                Account.code,
                Account.name,
                Account.account_type,
                func.sum(JournalLine.debit),
                func.sum(JournalLine.credit),
            )
            .outerjoin(JournalLine, JournalLine.account_id == Account.id)
            .group_by(Account.id, Account.code, Account.name, Account.account_type)
            .order_by(Account.code)
        )

    @staticmethod
    def _to_balance(row) -> AccountBalance:
        account_id, code, name, account_type, debits, credits = row
        return AccountBalance(
            account_id=account_id,
            code=code,
            name=name,
            account_type=AccountType(getattr(account_type, "value", account_type)),
            debit_total=_decimal(debits),
            credit_total=_decimal(credits),
        )

    def account_balances(self) -> list[AccountBalance]:
        """Debit/credit totals and signed balance for every account, by code."""
        rows = self.session.execute(self._balance_query()).all()
        return [self._to_balance(row) for row in rows]

    def account_balance(self, account_id: UUID) -> AccountBalance:
        row = self.session.execute(
            self._balance_query().where(Account.id == account_id)
        ).one_or_none()
        if row is None:
            raise RecordNotFoundError("account", str(account_id))
        return self._to_balance(row)

    def trial_balance(self) -> TrialBalance:
        rows = tuple(self.account_balances())
        return TrialBalance(
            rows=rows,
            total_debits=sum((row.debit_total for row in rows), ZERO),
            total_credits=sum((row.credit_total for row in rows), ZERO),
        )
