"""Order aggregate: an immutable snapshot of what was bought and at what price.

Line items, prices and totals are fixed at placement. Afterwards only the
two lifecycle axes move (``status`` and ``payment_status``), always through
``transitions.transition``, and every move raises a domain event.
"""

import secrets
from decimal import Decimal

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, ValueObject

from storefront.checkout.quote import total_of
from storefront.domain import storefront
from storefront.order.delivery import DeliverySelection
from storefront.order.events import (
    OrderCancelled,
    OrderCompleted,
    OrderDelivered,
    OrderDispatched,
    OrderPlaced,
    PaymentConfirmed,
    PaymentDeclined,
)
from storefront.order.transitions import (
    OrderEvent,
    OrderState,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    transition,
)
from storefront.shared.clock import now
from storefront.shared.money import quantize, to_decimal, to_str


def generate_order_number(at=None) -> str:
    """``ORD-<epoch millis>-<6 random upper-case hex chars>``."""
    at = at or now()
    return f"ORD-{int(at.timestamp() * 1000)}-{secrets.token_hex(3).upper()}"


def checkout_key_for(user_id, checkout_token) -> str:
    """Unique per user and token, so one checkout can commit at most one order."""
    return f"{user_id}:{checkout_token}"


@storefront.entity(part_of="Order")
class OrderItem:
    """One purchased line, priced at the moment of checkout."""

    product_id = Identifier(required=True)
    sku = String(required=True, max_length=64)
    name = String(required=True, max_length=255)
    list_price = String(required=True, max_length=32)
    discount_percentage = String(max_length=8, default="0")
    unit_price = String(required=True, max_length=32)
    quantity = Integer(required=True, min_value=1)
    line_total = String(required=True, max_length=32)


@storefront.aggregate
class Order:
    user_id = Identifier(required=True)
    order_number = String(required=True, max_length=64, unique=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_reference = String(max_length=255)
    items = HasMany(OrderItem)
    subtotal = String(required=True, max_length=32)
    discount_amount = String(max_length=32, default="0.00")
    bonuses_used = Integer(default=0, min_value=0)
    bonuses_earned = Integer(default=0, min_value=0)
    delivery = ValueObject(DeliverySelection, required=True)
    tracking_number = String(max_length=255)
    promocode_id = Identifier()
    promocode_code = String(max_length=20)
    total = String(required=True, max_length=32)
    checkout_token = String(max_length=255)
    checkout_key = String(max_length=320, unique=True)
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=50)
    placed_at = DateTime()
    paid_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    completed_at = DateTime()
    cancelled_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["An order must contain at least one item"]})

    @invariant.post
    def total_must_add_up(self):
        expected = total_of(
            self.subtotal,
            self.discount_amount,
            self.bonuses_used or 0,
            self.delivery.cost if self.delivery else 0,
        )
        if quantize(self.total) != expected:
            raise ValidationError({"total": ["Total must equal subtotal - discount - bonuses + delivery"]})

    @invariant.post
    def reductions_cannot_exceed_subtotal(self):
        payable = to_decimal(self.subtotal) - to_decimal(self.discount_amount)
        if payable < 0 or Decimal(self.bonuses_used or 0) > payable:
            raise ValidationError({"total": ["Discount and bonuses cannot exceed the subtotal"]})

    @invariant.post
    def completed_orders_are_paid(self):
        if self.status == OrderStatus.COMPLETED.value and self.payment_status != PaymentStatus.PAID.value:
            raise ValidationError({"status": ["A completed order must be paid"]})

    # -------------------------------------------------------------------
    # Placement
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        lines,
        subtotal,
        discount_amount,
        bonuses_used,
        delivery: DeliverySelection,
        payment_method,
        promocode=None,
        checkout_token=None,
    ):
        """Build a pending order from priced lines.

        ``lines`` are dicts with product_id, sku, name, list_price,
        discount_percentage, unit_price and quantity.
        """
        placed_at = now()
        total = total_of(subtotal, discount_amount, bonuses_used, delivery.cost)
        order = cls(
            user_id=user_id,
            order_number=generate_order_number(placed_at),
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=payment_method,
            items=[
                OrderItem(
                    product_id=line["product_id"],
                    sku=line["sku"],
                    name=line["name"],
                    list_price=to_str(line["list_price"]),
                    discount_percentage=str(line.get("discount_percentage") or "0"),
                    unit_price=to_str(line["unit_price"]),
                    quantity=line["quantity"],
                    line_total=to_str(to_decimal(line["unit_price"]) * line["quantity"]),
                )
                for line in lines
            ],
            subtotal=to_str(subtotal),
            discount_amount=to_str(discount_amount),
            bonuses_used=bonuses_used,
            delivery=delivery,
            promocode_id=str(promocode.id) if promocode else None,
            promocode_code=promocode.code if promocode else None,
            total=to_str(total),
            checkout_token=checkout_token,
            checkout_key=checkout_key_for(user_id, checkout_token) if checkout_token else None,
            placed_at=placed_at,
            updated_at=placed_at,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id),
                item_count=sum(item.quantity for item in order.items),
                subtotal=order.subtotal,
                discount_amount=order.discount_amount,
                bonuses_used=order.bonuses_used,
                delivery_cost=order.delivery.cost,
                total=order.total,
                payment_method=order.payment_method,
                promocode_id=order.promocode_id,
                placed_at=placed_at,
            )
        )
        return order

    def attach_payment_reference(self, payment_reference):
        if self.payment_reference and self.payment_reference != payment_reference:
            raise ValidationError({"payment_reference": ["Order already has a payment reference"]})
        self.payment_reference = payment_reference

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    @property
    def state(self) -> OrderState:
        return OrderState.of(self)

    @property
    def goods_amount(self) -> Decimal:
        """What the customer paid for the goods: subtotal less discount and bonuses."""
        return quantize(to_decimal(self.subtotal) - to_decimal(self.discount_amount) - Decimal(self.bonuses_used or 0))

    def _move(self, event: OrderEvent, **changes):
        target = transition(self.state, event)
        with atomic_change(self):
            self.status = target.status.value
            self.payment_status = target.payment_status.value
            for field, value in changes.items():
                setattr(self, field, value)
            self.updated_at = now()

    def check_payment_reference(self, payment_reference):
        if payment_reference and self.payment_reference and payment_reference != self.payment_reference:
            raise ValidationError(
                {"payment_reference": [f"Payment {payment_reference} does not belong to order {self.order_number}"]}
            )

    def confirm_payment(self, payment_reference=None):
        self.check_payment_reference(payment_reference)
        paid_at = now()
        self._move(OrderEvent.PAYMENT_CONFIRMED, paid_at=paid_at)
        if payment_reference and not self.payment_reference:
            self.payment_reference = payment_reference
        self.raise_(
            PaymentConfirmed(
                order_id=str(self.id),
                payment_reference=self.payment_reference,
                amount=self.total,
                status=self.status,
                paid_at=paid_at,
            )
        )

    def decline_payment(self, reason=None):
        self._move(OrderEvent.PAYMENT_DECLINED)
        self.raise_(PaymentDeclined(order_id=str(self.id), payment_reference=self.payment_reference, reason=reason))

    def dispatch(self, tracking_number=None):
        shipped_at = now()
        self._move(OrderEvent.DISPATCHED, shipped_at=shipped_at, tracking_number=tracking_number)
        self.raise_(OrderDispatched(order_id=str(self.id), tracking_number=tracking_number, shipped_at=shipped_at))

    def mark_delivered(self):
        delivered_at = now()
        self._move(OrderEvent.DELIVERED, delivered_at=delivered_at)
        self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=delivered_at))

    def complete(self, bonuses_earned=0):
        completed_at = now()
        self._move(OrderEvent.COMPLETED, completed_at=completed_at, bonuses_earned=bonuses_earned)
        self.raise_(
            OrderCompleted(
                order_id=str(self.id),
                user_id=str(self.user_id),
                bonuses_earned=bonuses_earned,
                completed_at=completed_at,
            )
        )

    def cancel(self, reason=None, cancelled_by=None):
        previous = self.status
        refund_due = self.payment_status == PaymentStatus.PAID.value
        cancelled_at = now()
        self._move(
            OrderEvent.CANCELLED,
            cancelled_at=cancelled_at,
            cancellation_reason=reason,
            cancelled_by=cancelled_by,
        )
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                user_id=str(self.user_id),
                previous_status=previous,
                reason=reason,
                cancelled_by=cancelled_by,
                refund_due=refund_due,
                bonuses_used=self.bonuses_used,
                promocode_id=self.promocode_id,
                cancelled_at=cancelled_at,
            )
        )

    # -------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------
    def receipt(self) -> dict:
        return {
            "order_id": str(self.id),
            "order_number": self.order_number,
            "status": self.status,
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "payment_reference": self.payment_reference,
            "subtotal": self.subtotal,
            "discount_amount": self.discount_amount,
            "bonuses_used": self.bonuses_used,
            "delivery_cost": self.delivery.cost,
            "total": self.total,
        }

    def details(self) -> dict:
        def _iso(value):
            return value.isoformat() if value else None

        return {
            **self.receipt(),
            "user_id": str(self.user_id),
            "bonuses_earned": self.bonuses_earned,
            "promocode_id": self.promocode_id,
            "promocode_code": self.promocode_code,
            "tracking_number": self.tracking_number,
            "delivery": {
                "service": self.delivery.service,
                "delivery_type": self.delivery.delivery_type,
                "point_code": self.delivery.point_code,
                "address": self.delivery.address(),
                "cost": self.delivery.cost,
            },
            "items": [
                {
                    "product_id": str(item.product_id),
                    "sku": item.sku,
                    "name": item.name,
                    "list_price": item.list_price,
                    "discount_percentage": item.discount_percentage,
                    "unit_price": item.unit_price,
                    "quantity": item.quantity,
                    "line_total": item.line_total,
                }
                for item in self.items
            ],
            "placed_at": _iso(self.placed_at),
            "paid_at": _iso(self.paid_at),
            "shipped_at": _iso(self.shipped_at),
            "delivered_at": _iso(self.delivered_at),
            "completed_at": _iso(self.completed_at),
            "cancelled_at": _iso(self.cancelled_at),
            "cancellation_reason": self.cancellation_reason,
        }
