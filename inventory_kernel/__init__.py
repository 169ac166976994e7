"""
Inventory Kernel

Ledger posting and inventory synchronization for small-business order
processing:
- Balanced double-entry journals for sales and purchases
- Stock levels that never go negative
- COGS at the cost captured when the line was added
- All-or-nothing submission over transactional or compensating stores
"""

__version__ = "0.1.0"
