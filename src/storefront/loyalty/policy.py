"""Bonus spending and earning rules. Pure functions, no storage access.

One bonus point is worth one currency unit.
"""

from decimal import ROUND_DOWN, Decimal

from protean.exceptions import ValidationError

from storefront.errors import InsufficientBonusBalance
from storefront.shared.money import to_decimal

HUNDRED = Decimal(100)


def _whole_units(amount) -> int:
    return int(to_decimal(amount).to_integral_value(rounding=ROUND_DOWN))


def spendable(balance: int, payable, max_share_percent: int = 100) -> int:
    """Largest number of bonuses that may go towards ``payable``."""
    payable = max(to_decimal(payable), Decimal(0))
    share_cap = _whole_units(payable * Decimal(max_share_percent) / HUNDRED)
    return max(0, min(balance, share_cap))


def check_bonus_spend(requested: int, balance: int, payable, max_share_percent: int = 100) -> int:
    """Return ``requested`` if it may be spent, otherwise raise.

    ``payable`` is the amount the bonuses would cover: subtotal minus any
    promocode discount, before delivery.
    """
    if requested is None or requested == 0:
        return 0
    if requested < 0:
        raise ValidationError({"bonuses_used": ["Bonuses to use cannot be negative"]})
    if requested > balance:
        raise InsufficientBonusBalance({"bonuses_used": [f"Insufficient bonus balance: {balance} available"]})
    if requested > to_decimal(payable):
        raise InsufficientBonusBalance({"bonuses_used": ["Bonuses cannot exceed the order amount"]})
    limit = spendable(balance, payable, max_share_percent)
    if requested > limit:
        raise InsufficientBonusBalance(
            {"bonuses_used": [f"At most {limit} bonuses can be used on this order ({max_share_percent}% of its amount)"]}
        )
    return requested


def bonuses_earned(paid_amount, percent: int) -> int:
    """Cashback on the goods amount actually paid, rounded down."""
    if percent <= 0:
        return 0
    return max(0, _whole_units(to_decimal(paid_amount) * Decimal(percent) / HUNDRED))
