"""Effective price of a product at a point in time."""

from datetime import datetime
from decimal import Decimal

from storefront.shared.clock import as_utc
from storefront.shared.money import quantize, to_decimal

HUNDRED = Decimal(100)


def discount_active(starts_at: datetime | None, ends_at: datetime | None, at: datetime) -> bool:
    """True when ``at`` falls inside the discount window.

    Either end may be open, but a product without any window has no discount.
    """
    if starts_at is None and ends_at is None:
        return False
    at = as_utc(at)
    if starts_at is not None and at < as_utc(starts_at):
        return False
    if ends_at is not None and at > as_utc(ends_at):
        return False
    return True


def effective_price(price, discount_percentage, starts_at, ends_at, at: datetime) -> Decimal:
    base = to_decimal(price)
    percentage = to_decimal(discount_percentage)
    if percentage <= 0 or not discount_active(starts_at, ends_at, at):
        return quantize(base)
    return quantize(base * (HUNDRED - percentage) / HUNDRED)
