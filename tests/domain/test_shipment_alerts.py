"""Tests for shipment threshold alerts."""

from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_kernel.domain.alerts import ShipmentAlertEvaluator
from inventory_kernel.domain.dtos import ItemSnapshot
from inventory_kernel.exceptions import InvalidShipmentThresholdError


def item(name, quantity, threshold) -> ItemSnapshot:
    return ItemSnapshot(
        id=uuid4(),
        name=name,
        sku=name.upper(),
        quantity=quantity,
        cost_price=Decimal("1"),
        selling_price=Decimal("2"),
        shipment_threshold=threshold,
    )


class TestRatio:
    def test_ratio_is_exact(self):
        ratio = ShipmentAlertEvaluator().ratio(item("Widget", 1, 3))

        assert ratio == Decimal(1) / Decimal(3) * 100

    @pytest.mark.parametrize("threshold", [0, -5])
    def test_non_positive_threshold_rejected(self, threshold):
        with pytest.raises(InvalidShipmentThresholdError) as exc_info:
            ShipmentAlertEvaluator().ratio(item("Widget", 10, threshold))

        assert exc_info.value.threshold == threshold


class TestEvaluate:
    def test_alert_and_ready_boundaries(self):
        items = [
            item("Below", 79, 100),
            item("AtAlert", 80, 100),
            item("AtReady", 100, 100),
            item("Past", 150, 100),
        ]

        alerts = ShipmentAlertEvaluator().evaluate(items)

        assert [a.name for a in alerts] == ["Past", "AtReady", "AtAlert"]
        assert [a.ready_to_ship for a in alerts] == [True, True, False]

    def test_near_and_past_threshold(self):
        """Threshold 100: 85 on hand alerts at ratio 85; 120 alerts ready to ship."""
        alerts = ShipmentAlertEvaluator().evaluate([item("Near", 85, 100), item("Over", 120, 100)])

        assert [(a.name, a.ratio, a.ready_to_ship) for a in alerts] == [
            ("Over", Decimal("120"), True),
            ("Near", Decimal("85"), False),
        ]

    def test_custom_percentages(self):
        alerts = ShipmentAlertEvaluator(alert_percent=Decimal("50"), ready_percent=Decimal("60")).evaluate(
            [item("Half", 50, 100), item("Sixty", 60, 100)]
        )

        assert [(a.name, a.ready_to_ship) for a in alerts] == [("Sixty", True), ("Half", False)]

    def test_ratio_display_is_rounded(self):
        alerts = ShipmentAlertEvaluator().evaluate([item("Third", 5, 6)])

        assert alerts[0].ratio_display == Decimal("83.33")

    def test_invalid_threshold_fails_by_default(self):
        with pytest.raises(InvalidShipmentThresholdError):
            ShipmentAlertEvaluator().evaluate([item("Good", 90, 100), item("Bad", 1, 0)])

    def test_skip_invalid_logs_and_continues(self, captured_logs):
        bad = item("Bad", 1, 0)

        alerts = ShipmentAlertEvaluator().evaluate([item("Good", 90, 100), bad], skip_invalid=True)

        assert [a.name for a in alerts] == ["Good"]
        warnings = [r for r in captured_logs() if r["message"] == "shipment_threshold_invalid"]
        assert warnings[0]["item_id"] == str(bad.id)
        assert warnings[0]["level"] == "WARNING"
