"""
PricingResolver -- default unit prices and cost basis for order lines.

Sale lines default to the item's selling price; purchase lines default to its
cost price.  The user may override unit_price on any line.  cost_basis is
always the item's cost_price at the moment the line is added and is never
overridden or recomputed afterwards.
"""

from decimal import Decimal

from inventory_kernel.domain.dtos import ItemSnapshot, OrderKind


class PricingResolver:
    """Pure price lookup.  Holds no state; one instance may be shared."""

    def default_unit_price(self, item: ItemSnapshot, kind: OrderKind) -> Decimal:
        if kind == OrderKind.SALE:
            return item.selling_price
        return item.cost_price

    def cost_basis(self, item: ItemSnapshot) -> Decimal:
        return item.cost_price
