"""Idempotency key format."""

from uuid import UUID

import pytest

from inventory_kernel.utils.idempotency import generate_idempotency_key, parse_idempotency_key

ORDER_KEY = UUID("550e8400-e29b-41d4-a716-446655440000")


class TestIdempotencyKeys:
    def test_generate(self):
        assert generate_idempotency_key("orders", "sale", ORDER_KEY) == (
            "orders:sale:550e8400-e29b-41d4-a716-446655440000"
        )

    def test_parse_round_trip(self):
        key = generate_idempotency_key("orders", "purchase", ORDER_KEY)

        assert parse_idempotency_key(key) == ("orders", "purchase", str(ORDER_KEY))

    def test_request_key_may_contain_colons(self):
        assert parse_idempotency_key("journal:manual:2024:close") == ("journal", "manual", "2024:close")

    @pytest.mark.parametrize("key", ["", "orders", "orders:sale"])
    def test_parse_rejects_short_keys(self, key):
        with pytest.raises(ValueError, match="Invalid idempotency key"):
            parse_idempotency_key(key)
