"""Order payment: confirmations and declines, direct or via gateway callback.

Callbacks may be delivered more than once. A callback whose outcome the
order already reflects is acknowledged without changing anything.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.order.transitions import OrderEvent, already_applied

logger = structlog.get_logger(__name__)


class CallbackStatus:
    PAID = "paid"
    FAILED = "failed"


@storefront.command(part_of="Order")
class ConfirmPayment:
    order_id = Identifier(required=True)
    payment_reference = String(max_length=255)


@storefront.command(part_of="Order")
class DeclinePayment:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@storefront.command(part_of="Order")
class ProcessPaymentCallback:
    """Asynchronous paid/failed report from the payment processor."""

    payment_reference = String(required=True, max_length=255)
    status = String(required=True, max_length=20)
    failure_reason = String(max_length=500)


@storefront.command_handler(part_of=Order)
class OrderPaymentHandler:
    def _confirm(self, repo, order, payment_reference=None):
        order.check_payment_reference(payment_reference)
        if already_applied(order.state, OrderEvent.PAYMENT_CONFIRMED):
            logger.info("Payment already confirmed", order_id=str(order.id))
            return order.receipt()
        order.confirm_payment(payment_reference=payment_reference)
        repo.add(order)
        logger.info("Payment confirmed", order_id=str(order.id), status=order.status)
        return order.receipt()

    def _decline(self, repo, order, reason=None):
        if already_applied(order.state, OrderEvent.PAYMENT_DECLINED):
            logger.info("Payment already declined", order_id=str(order.id))
            return order.receipt()
        order.decline_payment(reason=reason)
        repo.add(order)
        logger.warning("Payment declined", order_id=str(order.id), reason=reason)
        return order.receipt()

    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        return self._confirm(repo, order, command.payment_reference)

    @handle(DeclinePayment)
    def decline_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        return self._decline(repo, order, command.reason)

    @handle(ProcessPaymentCallback)
    def process_payment_callback(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_payment_reference(command.payment_reference)
        if order is None:
            raise ObjectNotFoundError(
                {"payment_reference": [f"No order with payment reference {command.payment_reference}"]}
            )

        if command.status == CallbackStatus.PAID:
            return self._confirm(repo, order)
        if command.status == CallbackStatus.FAILED:
            return self._decline(repo, order, command.failure_reason or "Payment failed")
        raise ValidationError({"status": [f"Unknown payment status '{command.status}'"]})
