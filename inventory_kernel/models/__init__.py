"""ORM models for the inventory kernel."""

from inventory_kernel.models.account import (
    NORMAL_BALANCE_BY_TYPE,
    Account,
    AccountType,
    NormalBalance,
)
from inventory_kernel.models.item import Item
from inventory_kernel.models.journal import EntrySource, JournalEntry, JournalLine
from inventory_kernel.models.party import Customer, Supplier
from inventory_kernel.models.transaction import InventoryTransaction, TransactionType

__all__ = [
    "Account",
    "AccountType",
    "NormalBalance",
    "NORMAL_BALANCE_BY_TYPE",
    "Item",
    "Customer",
    "Supplier",
    "JournalEntry",
    "JournalLine",
    "EntrySource",
    "InventoryTransaction",
    "TransactionType",
]
