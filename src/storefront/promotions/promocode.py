"""Promocode and PromocodeUsage aggregates.

A single-use code may be redeemed once per user. The lock is the usage row
itself: its ``usage_key`` is unique, so two concurrent checkouts with the same
code cannot both commit. Temporary codes are valid until ``expires_at`` and
record usages keyed by order so they never collide.
"""

import re
from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String

from storefront.domain import storefront
from storefront.promotions.events import (
    PromocodeActivated,
    PromocodeCreated,
    PromocodeDeactivated,
    PromocodeRedeemed,
)
from storefront.shared.clock import now
from storefront.shared.money import to_decimal, to_str

CODE_PATTERN = re.compile(r"^[A-Z0-9]{4,20}$")


class PromocodeType(Enum):
    SINGLE_USE = "single_use"
    TEMPORARY = "temporary"


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def usage_key(promocode_id, promocode_type, user_id, order_id) -> str:
    if promocode_type == PromocodeType.SINGLE_USE.value:
        return f"{promocode_id}:{user_id}"
    return f"{promocode_id}:{user_id}:{order_id}"


@storefront.aggregate
class Promocode:
    code = String(required=True, max_length=20, unique=True)
    discount_percentage = String(required=True, max_length=8)
    min_order_amount = String(max_length=32, default="0.00")
    max_discount_amount = String(max_length=32)
    promocode_type = String(choices=PromocodeType, default=PromocodeType.SINGLE_USE.value)
    expires_at = DateTime()
    is_active = Boolean(default=True)
    created_by = Identifier()
    created_at = DateTime()

    @invariant.post
    def code_must_be_upper_alphanumeric(self):
        if not CODE_PATTERN.match(self.code or ""):
            raise ValidationError({"code": ["Code must be 4-20 upper-case letters or digits"]})

    @invariant.post
    def discount_must_be_a_positive_percentage(self):
        try:
            percentage = to_decimal(self.discount_percentage)
        except ValueError:
            raise ValidationError({"discount_percentage": ["Discount must be a number"]}) from None
        if percentage <= 0 or percentage > Decimal(100):
            raise ValidationError({"discount_percentage": ["Discount must be greater than 0 and at most 100"]})

    @invariant.post
    def amounts_must_not_be_negative(self):
        if to_decimal(self.min_order_amount) < 0:
            raise ValidationError({"min_order_amount": ["Minimum order amount cannot be negative"]})
        if self.max_discount_amount is not None and to_decimal(self.max_discount_amount) <= 0:
            raise ValidationError({"max_discount_amount": ["Maximum discount must be greater than zero"]})

    @invariant.post
    def temporary_codes_must_expire(self):
        if self.promocode_type == PromocodeType.TEMPORARY.value and self.expires_at is None:
            raise ValidationError({"expires_at": ["Temporary promocodes need an expiry date"]})

    @classmethod
    def create(
        cls,
        code,
        discount_percentage,
        promocode_type=PromocodeType.SINGLE_USE.value,
        min_order_amount="0",
        max_discount_amount=None,
        expires_at=None,
        created_by=None,
    ):
        promocode = cls(
            code=normalize_code(code),
            discount_percentage=str(to_decimal(discount_percentage)),
            promocode_type=promocode_type,
            min_order_amount=to_str(min_order_amount or "0"),
            max_discount_amount=to_str(max_discount_amount) if max_discount_amount is not None else None,
            expires_at=expires_at,
            is_active=True,
            created_by=created_by,
            created_at=now(),
        )
        promocode.raise_(
            PromocodeCreated(
                promocode_id=str(promocode.id),
                code=promocode.code,
                promocode_type=promocode.promocode_type,
                discount_percentage=promocode.discount_percentage,
                min_order_amount=promocode.min_order_amount,
                max_discount_amount=promocode.max_discount_amount,
                expires_at=promocode.expires_at,
            )
        )
        return promocode

    @property
    def is_single_use(self) -> bool:
        return self.promocode_type == PromocodeType.SINGLE_USE.value

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Promocode is already inactive"]})
        self.is_active = False
        self.raise_(PromocodeDeactivated(promocode_id=str(self.id), code=self.code))

    def activate(self):
        if self.is_active:
            raise ValidationError({"is_active": ["Promocode is already active"]})
        self.is_active = True
        self.raise_(PromocodeActivated(promocode_id=str(self.id), code=self.code))


@storefront.aggregate
class PromocodeUsage:
    """Append-only record that a promocode was applied to an order."""

    promocode_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    usage_key = String(required=True, max_length=255, unique=True)
    used_at = DateTime(required=True)

    @classmethod
    def record(cls, promocode, user_id, order_id):
        usage = cls(
            promocode_id=str(promocode.id),
            user_id=str(user_id),
            order_id=str(order_id),
            usage_key=usage_key(promocode.id, promocode.promocode_type, user_id, order_id),
            used_at=now(),
        )
        usage.raise_(
            PromocodeRedeemed(
                usage_id=str(usage.id),
                promocode_id=usage.promocode_id,
                user_id=usage.user_id,
                order_id=usage.order_id,
                used_at=usage.used_at,
            )
        )
        return usage
