"""
Idempotency key generation utilities.

Idempotency keys ensure that the same order always produces the same journal
entry, even when it is submitted twice or retried after a failure.
"""

from uuid import UUID


def generate_idempotency_key(
    producer: str,
    kind: str,
    key: UUID | str,
) -> str:
    """
    Generate an idempotency key.

    Format: producer:kind:key

    The key is stored on the JournalEntry and has a unique constraint.

    Example:
        >>> generate_idempotency_key("orders", "sale", order_key)
        "orders:sale:550e8400-e29b-41d4-a716-446655440000"
    """
    return f"{producer}:{kind}:{key}"


def parse_idempotency_key(key: str) -> tuple[str, str, str]:
    """
    Parse an idempotency key into (producer, kind, key).

    Raises:
        ValueError: If key format is invalid.
    """
    parts = key.split(":", 2)
    if len(parts) != 3:
        raise ValueError(f"Invalid idempotency key format: {key}")
    return parts[0], parts[1], parts[2]
