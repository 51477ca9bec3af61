"""Order lifecycle as a pure transition function.

An order moves along two independent axes: ``status`` tracks fulfilment and
``payment_status`` tracks money. ``transition`` maps a state and an event to
the next state or raises ``InvalidOrderTransition``; the aggregate consults
it before every write.

    pending --payment confirmed--> paid --dispatched--> shipped --delivered--> delivered --completed--> completed
    pending --dispatched (cash on delivery)--> shipped
    pending | paid --cancelled--> cancelled

Completed and cancelled are terminal.
"""

from dataclasses import dataclass, replace
from enum import Enum

from storefront.errors import InvalidOrderTransition


class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class PaymentMethod(Enum):
    ONLINE = "online"
    ON_DELIVERY = "on_delivery"


class OrderEvent(Enum):
    PAYMENT_CONFIRMED = "payment_confirmed"
    PAYMENT_DECLINED = "payment_declined"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})
CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PAID})


@dataclass(frozen=True)
class OrderState:
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod

    @classmethod
    def of(cls, order) -> "OrderState":
        return cls(
            status=OrderStatus(order.status),
            payment_status=PaymentStatus(order.payment_status),
            payment_method=PaymentMethod(order.payment_method),
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


def _reject(state: OrderState, event: OrderEvent, reason: str | None = None):
    message = reason or f"Cannot apply '{event.value}' to an order that is {state.status.value}"
    raise InvalidOrderTransition({"status": [message]})


def _payment_confirmed(state: OrderState) -> OrderState:
    if state.status == OrderStatus.PENDING and state.payment_status != PaymentStatus.PAID:
        return replace(state, status=OrderStatus.PAID, payment_status=PaymentStatus.PAID)
    if (
        state.status in (OrderStatus.SHIPPED, OrderStatus.DELIVERED)
        and state.payment_method == PaymentMethod.ON_DELIVERY
        and state.payment_status != PaymentStatus.PAID
    ):
        # Cash collected at the door: money moves, fulfilment does not
        return replace(state, payment_status=PaymentStatus.PAID)
    return _reject(state, OrderEvent.PAYMENT_CONFIRMED)


def _payment_declined(state: OrderState) -> OrderState:
    if state.status == OrderStatus.PENDING and state.payment_status != PaymentStatus.PAID:
        return replace(state, payment_status=PaymentStatus.FAILED)
    return _reject(state, OrderEvent.PAYMENT_DECLINED)


def _dispatched(state: OrderState) -> OrderState:
    if state.status == OrderStatus.PAID:
        return replace(state, status=OrderStatus.SHIPPED)
    if state.status == OrderStatus.PENDING:
        if state.payment_method == PaymentMethod.ON_DELIVERY:
            return replace(state, status=OrderStatus.SHIPPED)
        return _reject(state, OrderEvent.DISPATCHED, "Online orders ship only after payment is confirmed")
    return _reject(state, OrderEvent.DISPATCHED)


def _delivered(state: OrderState) -> OrderState:
    if state.status == OrderStatus.SHIPPED:
        return replace(state, status=OrderStatus.DELIVERED)
    return _reject(state, OrderEvent.DELIVERED)


def _completed(state: OrderState) -> OrderState:
    if state.status != OrderStatus.DELIVERED:
        return _reject(state, OrderEvent.COMPLETED)
    if state.payment_status != PaymentStatus.PAID:
        return _reject(state, OrderEvent.COMPLETED, "Order cannot be completed before it is paid")
    return replace(state, status=OrderStatus.COMPLETED)


def _cancelled(state: OrderState) -> OrderState:
    if state.status in CANCELLABLE_STATUSES:
        return replace(state, status=OrderStatus.CANCELLED)
    return _reject(state, OrderEvent.CANCELLED)


_RULES = {
    OrderEvent.PAYMENT_CONFIRMED: _payment_confirmed,
    OrderEvent.PAYMENT_DECLINED: _payment_declined,
    OrderEvent.DISPATCHED: _dispatched,
    OrderEvent.DELIVERED: _delivered,
    OrderEvent.COMPLETED: _completed,
    OrderEvent.CANCELLED: _cancelled,
}


def transition(state: OrderState, event: OrderEvent) -> OrderState:
    if state.is_terminal:
        return _reject(state, event, f"Order is {state.status.value} and can no longer change")
    return _RULES[event](state)


def already_applied(state: OrderState, event: OrderEvent) -> bool:
    """True when the state ``event`` leads to already holds.

    Handlers use this to turn a redelivered callback into a no-op instead of
    an error.
    """
    if event == OrderEvent.PAYMENT_CONFIRMED:
        return state.payment_status == PaymentStatus.PAID
    if event == OrderEvent.PAYMENT_DECLINED:
        return state.payment_status == PaymentStatus.FAILED and state.status == OrderStatus.PENDING
    target = {
        OrderEvent.DISPATCHED: OrderStatus.SHIPPED,
        OrderEvent.DELIVERED: OrderStatus.DELIVERED,
        OrderEvent.COMPLETED: OrderStatus.COMPLETED,
        OrderEvent.CANCELLED: OrderStatus.CANCELLED,
    }[event]
    return state.status == target
