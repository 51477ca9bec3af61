"""Order cancellation with compensation.

A pending or paid order can be cancelled. Paid orders are refunded through
the payment gateway first; if the refund fails nothing changes. Then spent
bonuses go back to the buyer and withdrawn stock returns to the shelf. A
promocode usage stays consumed.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.errors import PaymentGatewayError
from storefront.loyalty.account import LoyaltyAccount
from storefront.order.order import Order
from storefront.order.transitions import OrderEvent, PaymentStatus, already_applied, transition
from storefront.payment import get_payment_gateway
from storefront.shared.money import to_decimal

logger = structlog.get_logger(__name__)


class CancellationActor:
    CUSTOMER = "customer"
    STAFF = "staff"
    SYSTEM = "system"


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_by = String(max_length=50, default=CancellationActor.CUSTOMER)
    requested_by = Identifier()  # Set when a customer cancels their own order


def _refund(order) -> None:
    gateway = get_payment_gateway()
    try:
        result = gateway.refund(order.payment_reference, to_decimal(order.total), reason="Order cancelled")
    except TimeoutError as exc:
        raise PaymentGatewayError({"payment": [f"Refund timed out: {exc}"]}) from exc
    if not result.success:
        raise PaymentGatewayError({"payment": [result.failure_reason or "Refund failed"]})
    logger.info("Refund issued", order_id=str(order.id), refund_reference=result.refund_reference)


@storefront.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if command.requested_by and str(command.requested_by) != str(order.user_id):
            raise ObjectNotFoundError({"order": [f"Order {command.order_id} not found"]})
        if already_applied(order.state, OrderEvent.CANCELLED):
            return order.receipt()

        # Fail on an illegal transition before touching the gateway
        transition(order.state, OrderEvent.CANCELLED)
        if order.payment_status == PaymentStatus.PAID.value and order.payment_reference:
            _refund(order)

        order.cancel(reason=command.reason, cancelled_by=command.cancelled_by)

        if order.bonuses_used:
            accounts = current_domain.repository_for(LoyaltyAccount)
            account = accounts.for_user(order.user_id)
            if account is not None and account.restore(order.id):
                accounts.add(account)

        products = current_domain.repository_for(Product)
        for item in order.items:
            product = products.get(item.product_id)
            product.restock(item.quantity, order.id)
            products.add(product)

        repo.add(order)
        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            cancelled_by=command.cancelled_by,
            bonuses_restored=order.bonuses_used,
        )
        return order.receipt()
