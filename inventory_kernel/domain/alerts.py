"""
ShipmentAlertEvaluator -- items close to, or past, their shipment threshold.

ratio = quantity / shipment_threshold * 100.  Items at or above the alert
percentage (80 by default) are reported, highest ratio first; those at or
above the ready percentage (100) are flagged ready to ship.  Comparisons use
the exact Decimal ratio; ``ratio_display`` is rounded for presentation.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from inventory_kernel.db.types import round_money
from inventory_kernel.domain.dtos import ItemSnapshot
from inventory_kernel.exceptions import InvalidShipmentThresholdError
from inventory_kernel.logging_config import get_logger

logger = get_logger("domain.alerts")

DEFAULT_ALERT_PERCENT = Decimal("80")
DEFAULT_READY_PERCENT = Decimal("100")


@dataclass(frozen=True)
class ShipmentAlert:
    item_id: UUID
    name: str
    sku: str
    quantity: int
    shipment_threshold: int
    ratio: Decimal
    ready_to_ship: bool

    @property
    def ratio_display(self) -> Decimal:
        return round_money(self.ratio, 2)


class ShipmentAlertEvaluator:
    def __init__(
        self,
        alert_percent: Decimal = DEFAULT_ALERT_PERCENT,
        ready_percent: Decimal = DEFAULT_READY_PERCENT,
    ):
        self._alert_percent = Decimal(alert_percent)
        self._ready_percent = Decimal(ready_percent)

    def ratio(self, item: ItemSnapshot) -> Decimal:
        if item.shipment_threshold <= 0:
            raise InvalidShipmentThresholdError(str(item.id), item.shipment_threshold)
        return Decimal(item.quantity) / Decimal(item.shipment_threshold) * 100

    def evaluate(
        self,
        items: Iterable[ItemSnapshot],
        skip_invalid: bool = False,
    ) -> list[ShipmentAlert]:
        """
        Alerts for every item at or above the alert percentage.

        With ``skip_invalid`` an item whose threshold is not positive is
        logged and left out instead of failing the whole evaluation.
        """
        alerts: list[ShipmentAlert] = []
        for item in items:
            try:
                ratio = self.ratio(item)
            except InvalidShipmentThresholdError:
                if not skip_invalid:
                    raise
                logger.warning(
                    "shipment_threshold_invalid",
                    extra={"item_id": str(item.id), "threshold": item.shipment_threshold},
                )
                continue
            if ratio >= self._alert_percent:
                alerts.append(
                    ShipmentAlert(
                        item_id=item.id,
                        name=item.name,
                        sku=item.sku,
                        quantity=item.quantity,
                        shipment_threshold=item.shipment_threshold,
                        ratio=ratio,
                        ready_to_ship=ratio >= self._ready_percent,
                    )
                )
        alerts.sort(key=lambda a: (-a.ratio, a.name))
        return alerts
