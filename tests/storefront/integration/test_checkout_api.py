from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.delivery import get_delivery_gateway
from storefront.order.order import Order


def _checkout_body(product_id, **overrides):
    body = {
        "items": [{"product_id": product_id, "quantity": 1}],
        "delivery_service": "cdek",
        "delivery_type": "pvz",
        "delivery_point_code": "MSK001",
        "payment_method": "online",
    }
    body.update(overrides)
    return body


class TestCheckoutEndpoint:
    def test_checkout_returns_receipt(self, client, as_user, make_product, make_promocode):
        product_id = make_product(price="1000.00")
        make_promocode(code="SPRING10", min_order_amount="500")
        client.post("/loyalty/grants", json={"user_id": "user-1", "amount": 100})

        response = client.post(
            "/orders/checkout",
            json=_checkout_body(product_id, promocode_id="SPRING10", bonuses_used=200),
            headers=as_user(),
        )

        assert response.status_code == 201
        receipt = response.json()
        assert receipt["discount_amount"] == "100.00"
        assert receipt["bonuses_used"] == 200
        assert receipt["delivery_cost"] == "300.00"
        assert receipt["total"] == "1000.00"
        assert current_domain.repository_for(Order).get(receipt["order_id"]).user_id == "user-1"

    def test_client_prices_are_ignored(self, client, as_user, make_product):
        product_id = make_product(price="1000.00")
        body = _checkout_body(product_id)
        body["items"][0]["price"] = "1.00"

        response = client.post("/orders/checkout", json=body, headers=as_user())

        assert response.status_code == 201
        assert response.json()["subtotal"] == "1000.00"

    def test_missing_user_header(self, client, make_product):
        response = client.post("/orders/checkout", json=_checkout_body(make_product()))
        assert response.status_code == 401

    def test_courier_without_address_is_unprocessable(self, client, as_user, make_product):
        body = _checkout_body(make_product(), delivery_type="courier", delivery_point_code=None)
        response = client.post("/orders/checkout", json=body, headers=as_user())
        assert response.status_code == 422

    def test_insufficient_bonuses(self, client, as_user, make_product):
        product_id = make_product(price="10000.00")
        response = client.post(
            "/orders/checkout",
            json=_checkout_body(product_id, bonuses_used=5000),
            headers=as_user(),
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "InsufficientBonusBalance"
        assert body["retryable"] is False
        assert "bonuses_used" in body["messages"]

    def test_archived_product(self, client, as_user, make_product):
        product_id = make_product()
        client.post(f"/products/{product_id}/archive")

        response = client.post("/orders/checkout", json=_checkout_body(product_id), headers=as_user())

        assert response.status_code == 400
        assert response.json()["error"] == "ProductUnavailable"
        assert current_domain.repository_for(Order).list_for_user("user-1") == []

    def test_reused_promocode(self, client, as_user, make_product, make_promocode):
        product_id = make_product(stock_quantity=5)
        make_promocode(code="SPRING10")
        body = _checkout_body(product_id, promocode_id="SPRING10")
        assert client.post("/orders/checkout", json=body, headers=as_user()).status_code == 201

        response = client.post("/orders/checkout", json=body, headers=as_user())

        assert response.status_code == 400
        assert response.json()["error"] == "PromocodeAlreadyUsed"

    def test_delivery_outage_is_retryable(self, client, as_user, make_product):
        product_id = make_product(stock_quantity=5)
        get_delivery_gateway().configure(should_succeed=False, raise_timeout=True)

        response = client.post("/orders/checkout", json=_checkout_body(product_id), headers=as_user())

        assert response.status_code == 503
        assert response.json()["error"] == "DeliveryPricingUnavailable"
        assert response.json()["retryable"] is True
        assert current_domain.repository_for(Product).get(product_id).stock_quantity == 5


class TestOrderEndpoints:
    def _place(self, client, as_user, product_id, **overrides):
        response = client.post("/orders/checkout", json=_checkout_body(product_id, **overrides), headers=as_user())
        return response.json()

    def test_lifecycle_over_http(self, client, as_user, make_product):
        order_id = self._place(client, as_user, make_product())["order_id"]

        assert client.post(f"/orders/{order_id}/payment/confirm").json()["status"] == "paid"
        assert client.post(f"/orders/{order_id}/dispatch", json={"tracking_number": "TRK1"}).json()["status"] == "shipped"
        assert client.post(f"/orders/{order_id}/deliver").json()["status"] == "delivered"
        assert client.post(f"/orders/{order_id}/complete").json()["status"] == "completed"

        details = client.get(f"/orders/{order_id}", headers=as_user()).json()
        assert details["status"] == "completed"
        assert details["tracking_number"] == "TRK1"

    def test_illegal_transition_is_conflict(self, client, as_user, make_product):
        order_id = self._place(client, as_user, make_product())["order_id"]

        response = client.post(f"/orders/{order_id}/dispatch", json={"tracking_number": "TRK1"})

        assert response.status_code == 409
        assert response.json()["error"] == "InvalidOrderTransition"

    def test_other_users_order_is_hidden(self, client, as_user, make_product):
        order_id = self._place(client, as_user, make_product())["order_id"]

        assert client.get(f"/orders/{order_id}", headers=as_user("user-2")).status_code == 404
        response = client.post(f"/orders/{order_id}/cancel", json={}, headers=as_user("user-2"))
        assert response.status_code == 404

    def test_customer_cancel(self, client, as_user, make_product):
        order_id = self._place(client, as_user, make_product(), bonuses_used=40)["order_id"]

        response = client.post(f"/orders/{order_id}/cancel", json={"reason": "Too slow"}, headers=as_user())

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert client.get("/loyalty", headers=as_user()).json()["balance"] == 100

    def test_list_orders(self, client, as_user, make_product):
        product_id = make_product(stock_quantity=5)
        self._place(client, as_user, product_id)
        self._place(client, as_user, product_id)

        orders = client.get("/orders", headers=as_user()).json()

        assert len(orders) == 2
        assert client.get("/orders", headers=as_user("user-2")).json() == []
