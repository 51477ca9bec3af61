class TestCartEndpoints:
    def test_cart_lines_and_subtotal(self, client, as_user, make_product):
        kettle = make_product(price="1000.00")
        mug = make_product(price="150.50")

        client.post("/cart/items", json={"product_id": kettle}, headers=as_user())
        response = client.post("/cart/items", json={"product_id": mug, "quantity": 2}, headers=as_user())

        assert response.status_code == 200
        cart = response.json()
        assert cart["subtotal"] == "1301.00"
        assert {line["product_id"]: line["quantity"] for line in cart["items"]} == {kettle: 1, mug: 2}

    def test_quantity_zero_removes_line(self, client, as_user, make_product):
        product_id = make_product()
        client.post("/cart/items", json={"product_id": product_id}, headers=as_user())

        response = client.patch(f"/cart/items/{product_id}", json={"quantity": 0}, headers=as_user())

        assert response.json()["items"] == []
        assert response.json()["subtotal"] == "0.00"

    def test_archived_product_cannot_be_added(self, client, as_user, make_product):
        product_id = make_product()
        client.post(f"/products/{product_id}/archive")

        response = client.post("/cart/items", json={"product_id": product_id}, headers=as_user())

        assert response.status_code == 400
        assert response.json()["error"] == "ProductUnavailable"

    def test_more_than_stock(self, client, as_user, make_product):
        product_id = make_product(stock_quantity=1)
        response = client.post("/cart/items", json={"product_id": product_id, "quantity": 2}, headers=as_user())
        assert response.status_code == 400

    def test_clear(self, client, as_user, make_product):
        client.post("/cart/items", json={"product_id": make_product()}, headers=as_user())
        assert client.delete("/cart", headers=as_user()).json()["items"] == []

    def test_cart_requires_user(self, client):
        assert client.get("/cart").status_code == 401


class TestWishlistAndComparisonEndpoints:
    def test_wishlist(self, client, as_user, make_product):
        product_id = make_product()
        response = client.post("/wishlist/items", json={"product_id": product_id}, headers=as_user())
        assert response.json()["product_ids"] == [product_id]

        response = client.delete(f"/wishlist/items/{product_id}", headers=as_user())
        assert response.json()["product_ids"] == []

    def test_comparison(self, client, as_user, make_product):
        product_id = make_product()
        client.post("/comparison/items", json={"product_id": product_id}, headers=as_user())
        assert client.get("/comparison", headers=as_user()).json()["product_ids"] == [product_id]


class TestProductEndpoints:
    def test_add_and_get(self, client):
        response = client.post("/products", json={"sku": "kb-001", "name": "Keyboard", "price": "4990.00"})
        assert response.status_code == 201

        product = client.get(f"/products/{response.json()['product_id']}").json()
        assert product["sku"] == "KB-001"
        assert product["effective_price"] == "4990.00"

    def test_archived_products_are_hidden_by_default(self, client, make_product):
        product_id = make_product()
        client.post(f"/products/{product_id}/archive")

        assert client.get("/products").json() == []
        assert [p["product_id"] for p in client.get("/products?include_archived=true").json()] == [product_id]

    def test_unknown_product(self, client):
        assert client.get("/products/missing").status_code == 404


class TestPromocodeEndpoints:
    def test_create_and_validate(self, client, as_user):
        response = client.post(
            "/promocodes",
            json={"code": "spring10", "discount_percentage": "10", "min_order_amount": "500"},
            headers=as_user("admin"),
        )
        assert response.status_code == 201

        preview = client.post("/promocodes/validate", json={"code": "SPRING10", "amount": "1000"}, headers=as_user())
        assert preview.status_code == 200
        assert preview.json()["discount_amount"] == "100.00"

    def test_temporary_code_requires_expiry(self, client, as_user):
        response = client.post(
            "/promocodes",
            json={"code": "FLASH24", "discount_percentage": "5", "promocode_type": "temporary"},
            headers=as_user("admin"),
        )
        assert response.status_code == 422
