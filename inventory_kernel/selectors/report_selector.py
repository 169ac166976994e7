"""
Module: inventory_kernel.selectors.report_selector
Responsibility: Feeds the pure report aggregator and shipment alert evaluator
    from committed state: the reports page and the dashboard.
Architecture position: Kernel > Selectors.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.account_mapping import AccountMapping
from inventory_kernel.domain.alerts import ShipmentAlert, ShipmentAlertEvaluator
from inventory_kernel.domain.dtos import ItemSnapshot
from inventory_kernel.domain.reports import FinancialSummary, ReportAggregator
from inventory_kernel.models.item import Item
from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.ledger_selector import LedgerSelector


class ReportSelector(BaseSelector[Item]):
    def __init__(self, session: Session, account_mapping: AccountMapping | None = None):
        super().__init__(session)
        self._ledger = LedgerSelector(session)
        self._aggregator = ReportAggregator(account_mapping)

    def financial_summary(self) -> FinancialSummary:
        return self._aggregator.summarize(self._ledger.account_balances())

    def cash_balance(self) -> Decimal:
        return self.financial_summary().cash

    def items(self) -> list[ItemSnapshot]:
        rows = self.session.scalars(
            select(Item).order_by(Item.name).execution_options(populate_existing=True)
        ).all()
        return [ItemSnapshot.from_model(row) for row in rows]

    def shipment_alerts(
        self,
        evaluator: ShipmentAlertEvaluator | None = None,
        skip_invalid: bool = True,
    ) -> list[ShipmentAlert]:
        """Dashboard alerts; items without a usable threshold are skipped by default."""
        evaluator = evaluator or ShipmentAlertEvaluator()
        return evaluator.evaluate(self.items(), skip_invalid=skip_invalid)
