"""Money parsing and display rounding."""

from decimal import ROUND_HALF_EVEN, Decimal

import pytest

from inventory_kernel.db.types import money_from_value, round_money
from inventory_kernel.exceptions import InvalidPriceError


class TestMoneyFromValue:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (Decimal("9.99"), Decimal("9.99")),
            (12, Decimal("12")),
            ("0.10", Decimal("0.10")),
            ("0", Decimal("0")),
        ],
    )
    def test_accepts_exact_values(self, value, expected):
        assert money_from_value(value) == expected

    @pytest.mark.parametrize("value", [0.1, True, "abc", "NaN", "Infinity", Decimal("-0.01"), -3, None, [1]])
    def test_rejects(self, value):
        with pytest.raises(InvalidPriceError):
            money_from_value(value)

    def test_error_names_field(self):
        with pytest.raises(InvalidPriceError) as exc_info:
            money_from_value(-1, field="cost_price")

        assert exc_info.value.field == "cost_price"
        assert exc_info.value.value == -1

    def test_no_float_drift(self):
        total = sum((money_from_value("0.10") for _ in range(3)), Decimal("0"))

        assert total == Decimal("0.30")


class TestRoundMoney:
    def test_half_up_by_default(self):
        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("83.3333")) == Decimal("83.33")

    def test_places_and_mode(self):
        assert round_money(Decimal("2.345"), 0) == Decimal("2")
        assert round_money(Decimal("2.345"), 2, ROUND_HALF_EVEN) == Decimal("2.34")
        assert round_money(Decimal("1.5"), 0) == Decimal("2")
