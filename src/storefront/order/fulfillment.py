"""Fulfilment: dispatch and delivery, recorded by staff or reported by the carrier."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.order.transitions import OrderEvent, already_applied

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class RecordDispatch:
    order_id = Identifier(required=True)
    tracking_number = String(max_length=255)


@storefront.command(part_of="Order")
class RecordDelivery:
    order_id = Identifier(required=True)


@storefront.command(part_of="Order")
class ProcessDeliveryCallback:
    """Status report from the carrier, keyed by tracking number."""

    tracking_number = String(required=True, max_length=255)
    status = String(required=True, max_length=50)


@storefront.command_handler(part_of=Order)
class OrderFulfillmentHandler:
    def _deliver(self, repo, order):
        if already_applied(order.state, OrderEvent.DELIVERED):
            return order.receipt()
        order.mark_delivered()
        repo.add(order)
        logger.info("Order delivered", order_id=str(order.id))
        return order.receipt()

    @handle(RecordDispatch)
    def record_dispatch(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if already_applied(order.state, OrderEvent.DISPATCHED):
            return order.receipt()
        order.dispatch(tracking_number=command.tracking_number)
        repo.add(order)
        logger.info("Order dispatched", order_id=str(order.id), tracking_number=command.tracking_number)
        return order.receipt()

    @handle(RecordDelivery)
    def record_delivery(self, command):
        repo = current_domain.repository_for(Order)
        return self._deliver(repo, repo.get(command.order_id))

    @handle(ProcessDeliveryCallback)
    def process_delivery_callback(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_tracking_number(command.tracking_number)
        if order is None:
            raise ObjectNotFoundError(
                {"tracking_number": [f"No order with tracking number {command.tracking_number}"]}
            )

        if command.status != "delivered":
            # Intermediate carrier statuses do not move the order
            logger.info("Carrier status ignored", order_id=str(order.id), carrier_status=command.status)
            return order.receipt()
        return self._deliver(repo, order)
