"""
Pure domain layer.

Order building, pricing, posting rules, report aggregation and shipment
alerts, with NO dependencies on:
- ORM (SQLAlchemy sessions)
- Database
- Wall-clock time (inject a Clock)
"""

from inventory_kernel.domain.account_mapping import AccountMapping, AccountRole
from inventory_kernel.domain.alerts import ShipmentAlert, ShipmentAlertEvaluator
from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.dtos import (
    AccountBalance,
    AccountSnapshot,
    AccountType,
    CounterpartyRef,
    ItemSnapshot,
    JournalEntryRecord,
    JournalLineRecord,
    LineSide,
    OrderKind,
    PaymentMethod,
    TransactionRecord,
)
from inventory_kernel.domain.order import (
    Order,
    OrderBuilder,
    OrderDraft,
    OrderLine,
    OrderState,
)
from inventory_kernel.domain.posting import DraftLine, JournalDraft, PostingEngine
from inventory_kernel.domain.pricing import PricingResolver
from inventory_kernel.domain.reports import FinancialSummary, ReportAggregator

__all__ = [
    "AccountMapping",
    "AccountRole",
    "ShipmentAlert",
    "ShipmentAlertEvaluator",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "AccountBalance",
    "AccountSnapshot",
    "AccountType",
    "CounterpartyRef",
    "ItemSnapshot",
    "JournalEntryRecord",
    "JournalLineRecord",
    "LineSide",
    "OrderKind",
    "PaymentMethod",
    "TransactionRecord",
    "Order",
    "OrderBuilder",
    "OrderDraft",
    "OrderLine",
    "OrderState",
    "DraftLine",
    "JournalDraft",
    "PostingEngine",
    "PricingResolver",
    "FinancialSummary",
    "ReportAggregator",
]
