import json
from datetime import timedelta

import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    bed = DomainFixture(storefront)
    bed.setup()
    setup_db(storefront)
    yield bed
    drop_db(storefront)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield

        from protean import current_domain

        from storefront.config import reset_settings
        from storefront.delivery import reset_delivery_gateway
        from storefront.payment import reset_payment_gateway

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

        reset_delivery_gateway()
        reset_payment_gateway()
        reset_settings()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
@pytest.fixture
def make_product():
    """Add a product through the AddProduct command and return its id."""
    from protean import current_domain

    from storefront.catalogue.management import AddProduct

    counter = {"n": 0}

    def _make(price="1000.00", stock_quantity=10, name=None, sku=None, **kwargs):
        counter["n"] += 1
        command = AddProduct(
            sku=sku or f"SKU{counter['n']:04d}",
            name=name or f"Product {counter['n']}",
            price=str(price),
            stock_quantity=stock_quantity,
            **kwargs,
        )
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture
def make_promocode():
    from protean import current_domain

    from storefront.promotions.management import CreatePromocode
    from storefront.shared.clock import now

    def _make(code="SPRING10", discount_percentage="10", promocode_type="single_use", **kwargs):
        if promocode_type == "temporary":
            kwargs.setdefault("expires_at", now() + timedelta(days=7))
        command = CreatePromocode(
            code=code,
            discount_percentage=str(discount_percentage),
            promocode_type=promocode_type,
            **kwargs,
        )
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture
def place_order():
    """Run PlaceOrder with pickup-point delivery defaults and return the receipt."""
    from protean import current_domain

    from storefront.checkout.placement import PlaceOrder

    def _place(user_id, items, items_json=None, **overrides):
        if items_json is None:
            items_json = json.dumps([{"product_id": pid, "quantity": qty} for pid, qty in items])
        fields = {
            "user_id": user_id,
            "items": items_json,
            "delivery_service": "cdek",
            "delivery_type": "pvz",
            "delivery_point_code": "MSK001",
            "payment_method": "online",
        }
        fields.update(overrides)
        return current_domain.process(PlaceOrder(**fields), asynchronous=False)

    return _place
