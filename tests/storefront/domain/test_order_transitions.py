import pytest

from storefront.errors import InvalidOrderTransition
from storefront.order.transitions import (
    OrderEvent,
    OrderState,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    already_applied,
    transition,
)


def _state(status, payment_status=PaymentStatus.PENDING, method=PaymentMethod.ONLINE):
    return OrderState(status=status, payment_status=payment_status, payment_method=method)


class TestHappyPath:
    def test_online_order_lifecycle(self):
        state = _state(OrderStatus.PENDING)
        state = transition(state, OrderEvent.PAYMENT_CONFIRMED)
        assert state == _state(OrderStatus.PAID, PaymentStatus.PAID)
        state = transition(state, OrderEvent.DISPATCHED)
        assert state.status == OrderStatus.SHIPPED
        state = transition(state, OrderEvent.DELIVERED)
        assert state.status == OrderStatus.DELIVERED
        state = transition(state, OrderEvent.COMPLETED)
        assert state.status == OrderStatus.COMPLETED
        assert state.is_terminal

    def test_cash_on_delivery_lifecycle(self):
        state = _state(OrderStatus.PENDING, method=PaymentMethod.ON_DELIVERY)
        state = transition(state, OrderEvent.DISPATCHED)
        assert state == _state(OrderStatus.SHIPPED, PaymentStatus.PENDING, PaymentMethod.ON_DELIVERY)
        state = transition(state, OrderEvent.DELIVERED)
        state = transition(state, OrderEvent.PAYMENT_CONFIRMED)
        assert state == _state(OrderStatus.DELIVERED, PaymentStatus.PAID, PaymentMethod.ON_DELIVERY)
        assert transition(state, OrderEvent.COMPLETED).status == OrderStatus.COMPLETED


class TestRejectedMoves:
    def test_online_order_cannot_ship_unpaid(self):
        with pytest.raises(InvalidOrderTransition):
            transition(_state(OrderStatus.PENDING), OrderEvent.DISPATCHED)

    def test_unpaid_delivered_order_cannot_complete(self):
        state = _state(OrderStatus.DELIVERED, method=PaymentMethod.ON_DELIVERY)
        with pytest.raises(InvalidOrderTransition):
            transition(state, OrderEvent.COMPLETED)

    def test_delivery_requires_shipment(self):
        with pytest.raises(InvalidOrderTransition):
            transition(_state(OrderStatus.PAID, PaymentStatus.PAID), OrderEvent.DELIVERED)

    @pytest.mark.parametrize("status", [OrderStatus.SHIPPED, OrderStatus.DELIVERED])
    def test_shipped_orders_cannot_be_cancelled(self, status):
        with pytest.raises(InvalidOrderTransition):
            transition(_state(status, PaymentStatus.PAID), OrderEvent.CANCELLED)

    def test_decline_after_payment_is_rejected(self):
        with pytest.raises(InvalidOrderTransition):
            transition(_state(OrderStatus.PAID, PaymentStatus.PAID), OrderEvent.PAYMENT_DECLINED)

    @pytest.mark.parametrize("status", [OrderStatus.COMPLETED, OrderStatus.CANCELLED])
    @pytest.mark.parametrize("event", list(OrderEvent))
    def test_terminal_orders_accept_nothing(self, status, event):
        state = _state(status, PaymentStatus.PAID)
        with pytest.raises(InvalidOrderTransition):
            transition(state, event)


class TestDeclineAndRetry:
    def test_declined_payment_keeps_order_pending(self):
        state = transition(_state(OrderStatus.PENDING), OrderEvent.PAYMENT_DECLINED)
        assert state == _state(OrderStatus.PENDING, PaymentStatus.FAILED)

    def test_payment_can_succeed_after_a_decline(self):
        state = _state(OrderStatus.PENDING, PaymentStatus.FAILED)
        assert transition(state, OrderEvent.PAYMENT_CONFIRMED).status == OrderStatus.PAID

    def test_cancel_from_pending_and_paid(self):
        assert transition(_state(OrderStatus.PENDING), OrderEvent.CANCELLED).status == OrderStatus.CANCELLED
        paid = _state(OrderStatus.PAID, PaymentStatus.PAID)
        assert transition(paid, OrderEvent.CANCELLED).payment_status == PaymentStatus.PAID


class TestAlreadyApplied:
    def test_payment_confirmation(self):
        assert already_applied(_state(OrderStatus.PAID, PaymentStatus.PAID), OrderEvent.PAYMENT_CONFIRMED)
        assert not already_applied(_state(OrderStatus.PENDING), OrderEvent.PAYMENT_CONFIRMED)

    def test_status_events(self):
        assert already_applied(_state(OrderStatus.SHIPPED, PaymentStatus.PAID), OrderEvent.DISPATCHED)
        assert already_applied(_state(OrderStatus.CANCELLED), OrderEvent.CANCELLED)
        assert not already_applied(_state(OrderStatus.SHIPPED, PaymentStatus.PAID), OrderEvent.DELIVERED)
