"""
Module: inventory_kernel.db.types
Responsibility: Annotated type aliases and utility functions for money columns.
    Centralizes precision, parsing and rounding so that every model and service
    uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere in the kernel.  money_from_value() rejects float
      input; all monetary amounts use Decimal.
    - round_money() is the ONLY sanctioned rounding function, and it is used
      for display values only (alert ratios, report rendering).  Posted
      amounts are exact products and are never rounded.

Failure modes:
    - InvalidPriceError on float, non-finite, negative or non-numeric input
      to money_from_value().
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated

from sqlalchemy import Numeric, String

from inventory_kernel.exceptions import InvalidPriceError

# 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# Short identifier strings (sku, account code, uom)
ShortCode = Annotated[str, String(50)]

# Names and descriptions
LongText = Annotated[str, String(4000)]


MONEY_DECIMAL_PLACES = 9
DEFAULT_ROUNDING = ROUND_HALF_UP


def money_from_value(value: object, field: str = "amount") -> Decimal:
    """
    Coerce a user-supplied amount into a non-negative finite Decimal.

    Accepts Decimal, int and numeric strings.  Floats are rejected outright
    because their binary representation cannot carry exact cents.

    Raises:
        InvalidPriceError: If value is a float, non-numeric, NaN/Infinity
            or negative.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidPriceError(value, field=field)
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, str)):
        try:
            amount = Decimal(value)
        except InvalidOperation:
            raise InvalidPriceError(value, field=field) from None
    else:
        raise InvalidPriceError(value, field=field)

    if not amount.is_finite() or amount < 0:
        raise InvalidPriceError(value, field=field)
    return amount


def round_money(
    value: Decimal,
    decimal_places: int = 2,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary or percentage value to specified decimal places.

    Preconditions: value is a Decimal.
    Postconditions: Returns value quantized to the specified decimal places
        using the specified rounding mode.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)
