"""Fixed-point money helpers.

Amounts are ``Decimal`` values quantized to cents and persisted as strings,
so no float ever touches a price.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """Coerce ints, strings and decimals to ``Decimal``. Floats go through ``str``."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a monetary amount: {value!r}") from exc


def quantize(value, rounding=ROUND_HALF_UP) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=rounding)


def floor_cents(value) -> Decimal:
    return quantize(value, rounding=ROUND_DOWN)


def to_str(value) -> str:
    return str(quantize(value))
