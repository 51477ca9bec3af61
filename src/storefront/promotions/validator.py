"""Promocode validation as pure functions.

Everything a decision depends on is passed in: the promocode, the user's
usage rows, the subtotal and the clock reading. Nothing is read from storage
here.
"""

from datetime import datetime
from decimal import Decimal

from storefront.errors import PromocodeAlreadyUsed, PromocodeInvalid, PromocodeMinOrderNotMet
from storefront.shared.clock import as_utc
from storefront.shared.money import floor_cents, quantize, to_decimal

HUNDRED = Decimal(100)


def ensure_redeemable(promocode, user_id, usages, at: datetime) -> None:
    """Raise unless ``user_id`` may redeem ``promocode`` at ``at``.

    ``usages`` are the user's existing usage rows for this promocode.
    """
    if promocode is None:
        raise PromocodeInvalid({"promocode": ["Promocode not found"]})
    if not promocode.is_active:
        raise PromocodeInvalid({"promocode": ["Promocode is not active"]})
    if promocode.expires_at is not None and as_utc(at) >= as_utc(promocode.expires_at):
        raise PromocodeInvalid({"promocode": ["Promocode has expired"]})
    if promocode.is_single_use and any(str(u.user_id) == str(user_id) for u in usages):
        raise PromocodeAlreadyUsed({"promocode": ["You have already used this promocode"]})


def discount_for(promocode, subtotal) -> Decimal:
    """Discount on ``subtotal``, capped by the promocode and rounded down to cents."""
    subtotal = quantize(subtotal)
    minimum = to_decimal(promocode.min_order_amount)
    if subtotal < minimum:
        raise PromocodeMinOrderNotMet(
            {"promocode": [f"Minimum order amount for this promocode is {quantize(minimum)}"]}
        )

    discount = subtotal * to_decimal(promocode.discount_percentage) / HUNDRED
    if promocode.max_discount_amount is not None:
        discount = min(discount, to_decimal(promocode.max_discount_amount))
    return min(floor_cents(discount), subtotal)


def validate_promocode(promocode, user_id, usages, subtotal, at: datetime) -> Decimal:
    ensure_redeemable(promocode, user_id, usages, at)
    return discount_for(promocode, subtotal)
