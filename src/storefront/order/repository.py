"""Order queries used by checkout dedup, callbacks and the completion sweep."""

from storefront.domain import storefront
from storefront.order.order import Order, checkout_key_for
from storefront.order.transitions import OrderStatus


@storefront.repository(part_of=Order)
class OrderRepository:
    def _first(self, **filters) -> Order | None:
        found = self._dao.query.filter(**filters).all().items
        return found[0] if found else None

    def find_by_payment_reference(self, payment_reference: str) -> Order | None:
        return self._first(payment_reference=payment_reference)

    def find_by_tracking_number(self, tracking_number: str) -> Order | None:
        return self._first(tracking_number=tracking_number)

    def find_by_checkout_token(self, user_id, checkout_token: str) -> Order | None:
        return self._first(checkout_key=checkout_key_for(str(user_id), checkout_token))

    def list_for_user(self, user_id) -> list[Order]:
        orders = self._dao.query.filter(user_id=str(user_id)).all().items
        return sorted(orders, key=lambda o: o.placed_at, reverse=True)

    def with_status(self, status: OrderStatus) -> list[Order]:
        return self._dao.query.filter(status=status.value).all().items
