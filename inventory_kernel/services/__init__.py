"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.inventory_synchronizer import (
    InventorySynchronizer,
    StockMovement,
    StockPlan,
)
from inventory_kernel.services.journal_writer import JournalWriter, ManualLine
from inventory_kernel.services.ledger_store import (
    LedgerStore,
    NewJournalLine,
    NewTransaction,
    SqlLedgerStore,
)
from inventory_kernel.services.master_data_service import MasterDataService, PartyInfo
from inventory_kernel.services.memory_store import MemoryLedgerStore
from inventory_kernel.services.order_submission import (
    OrderSubmissionService,
    SubmissionResult,
    SubmissionStatus,
)
from inventory_kernel.services.transaction_recorder import TransactionRecorder
from inventory_kernel.services.unit_of_work import UnitOfWork

__all__ = [
    "InventorySynchronizer",
    "JournalWriter",
    "LedgerStore",
    "ManualLine",
    "MasterDataService",
    "MemoryLedgerStore",
    "NewJournalLine",
    "NewTransaction",
    "OrderSubmissionService",
    "PartyInfo",
    "SqlLedgerStore",
    "StockMovement",
    "StockPlan",
    "SubmissionResult",
    "SubmissionStatus",
    "TransactionRecorder",
    "UnitOfWork",
]
