"""Order completion: manual, or by sweeping orders delivered long enough ago.

Completion credits cashback to the buyer's loyalty account. The credit is
keyed by order id in the account ledger, and a completed order is left
alone, so completing twice credits once.
"""

from datetime import timedelta

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, Integer
from protean.utils.globals import current_domain

from storefront.config import get_settings
from storefront.domain import storefront
from storefront.errors import InvalidOrderTransition
from storefront.loyalty.account import LoyaltyAccount
from storefront.loyalty.policy import bonuses_earned
from storefront.order.order import Order
from storefront.order.transitions import OrderEvent, OrderStatus, already_applied, transition
from storefront.shared.clock import as_utc, now

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class CompleteOrder:
    order_id = Identifier(required=True)


@storefront.command(part_of="Order")
class CompleteDeliveredOrders:
    """Complete every paid order delivered more than ``older_than_days`` ago."""

    older_than_days = Integer(min_value=0)
    as_of = DateTime()


def _complete(order, opened=None) -> int:
    """Complete ``order`` and credit its cashback. Returns the bonuses earned.

    ``opened`` caches accounts by user so one sweep credits the same account
    object for every order of a user.
    """
    earned = bonuses_earned(order.goods_amount, get_settings().bonus_earn_percent)
    order.complete(bonuses_earned=earned)

    accounts = current_domain.repository_for(LoyaltyAccount)
    opened = {} if opened is None else opened
    key = str(order.user_id)
    if key not in opened:
        opened[key] = accounts.for_user_or_open(order.user_id)
    account = opened[key]
    if account.credit(earned, order.id):
        accounts.add(account)

    current_domain.repository_for(Order).add(order)
    return earned


def _completable(order) -> bool:
    try:
        transition(order.state, OrderEvent.COMPLETED)
    except InvalidOrderTransition:
        return False
    return True


@storefront.command_handler(part_of=Order)
class CompleteOrderHandler:
    @handle(CompleteOrder)
    def complete_order(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        if already_applied(order.state, OrderEvent.COMPLETED):
            logger.info("Order already completed", order_id=str(order.id))
            return order.receipt()

        earned = _complete(order)
        logger.info("Order completed", order_id=str(order.id), bonuses_earned=earned)
        return order.receipt()

    @handle(CompleteDeliveredOrders)
    def complete_delivered_orders(self, command):
        as_of = as_utc(command.as_of) or now()
        days = command.older_than_days
        if days is None:
            days = get_settings().auto_complete_days
        cutoff = as_of - timedelta(days=days)

        repo = current_domain.repository_for(Order)
        due = [
            order
            for order in repo.with_status(OrderStatus.DELIVERED)
            if order.delivered_at and as_utc(order.delivered_at) <= cutoff
        ]
        if not due:
            logger.info("No delivered orders due for completion", cutoff=cutoff.isoformat())
            return 0

        completed = 0
        opened = {}
        for order in due:
            if not _completable(order):
                # Unpaid cash-on-delivery orders wait for the payment callback
                logger.warning("Skipping order that cannot be completed yet", order_id=str(order.id))
                continue
            earned = _complete(order, opened)
            completed += 1
            logger.info("Order completed", order_id=str(order.id), bonuses_earned=earned)

        logger.info("Delivered order sweep complete", completed_count=completed, cutoff=cutoff.isoformat())
        return completed
