"""Domain events for the Order aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    item_count = Integer(required=True)
    subtotal = String(required=True)
    discount_amount = String(required=True)
    bonuses_used = Integer(required=True)
    delivery_cost = String(required=True)
    total = String(required=True)
    payment_method = String(required=True)
    promocode_id = Identifier()
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentConfirmed:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_reference = String()
    amount = String(required=True)
    status = String(required=True)
    paid_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentDeclined:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_reference = String()
    reason = String()


@storefront.event(part_of="Order")
class OrderDispatched:
    __version__ = 1

    order_id = Identifier(required=True)
    tracking_number = String()
    shipped_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCompleted:
    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    bonuses_earned = Integer(required=True)
    completed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_by = String()
    refund_due = Boolean(default=False)
    bonuses_used = Integer(default=0)
    promocode_id = Identifier()
    cancelled_at = DateTime(required=True)
