"""Selectors for the inventory kernel (read side)."""

from inventory_kernel.selectors.activity_selector import ActivitySelector
from inventory_kernel.selectors.ledger_selector import LedgerSelector, TrialBalance
from inventory_kernel.selectors.report_selector import ReportSelector

__all__ = [
    "ActivitySelector",
    "LedgerSelector",
    "ReportSelector",
    "TrialBalance",
]
