from datetime import timedelta
from decimal import Decimal

import pytest
from protean.exceptions import ValidationError

from storefront.catalogue.events import ProductArchived, StockRestored, StockWithdrawn
from storefront.catalogue.product import Product
from storefront.errors import ProductUnavailable
from storefront.shared.clock import now


def _product(**overrides):
    fields = {"sku": "kb-001", "name": "Keyboard", "price": "1000", "stock_quantity": 5}
    fields.update(overrides)
    return Product.add(**fields)


class TestProductCreation:
    def test_sku_is_normalized_and_price_quantized(self):
        product = _product()
        assert product.sku == "KB-001"
        assert product.price == "1000.00"
        assert product.is_archived is False

    def test_price_must_be_positive(self):
        with pytest.raises(ValidationError) as exc:
            _product(price="0")
        assert "price" in exc.value.messages

    def test_discount_must_be_within_range(self):
        with pytest.raises(ValidationError) as exc:
            _product(discount_percentage="120")
        assert "discount_percentage" in exc.value.messages

    def test_discount_window_must_be_ordered(self):
        start = now()
        with pytest.raises(ValidationError) as exc:
            _product(discount_starts_at=start, discount_ends_at=start - timedelta(days=1))
        assert "discount_ends_at" in exc.value.messages


class TestProductPricing:
    def test_effective_price_uses_active_discount(self):
        product = _product(discount_percentage="25", discount_starts_at=now() - timedelta(days=1))
        assert product.effective_price() == Decimal("750.00")

    def test_update_pricing_replaces_window(self):
        product = _product(discount_percentage="25", discount_starts_at=now() - timedelta(days=1))
        product.update_pricing("1200")
        assert product.price == "1200.00"
        assert product.discount_percentage == "0"
        assert product.effective_price() == Decimal("1200.00")


class TestProductStock:
    def test_withdraw_reduces_stock(self):
        product = _product()
        product.withdraw_stock(3, order_id="order-1")
        assert product.stock_quantity == 2
        assert isinstance(product._events[-1], StockWithdrawn)

    def test_withdraw_more_than_stock_fails(self):
        product = _product()
        with pytest.raises(ProductUnavailable):
            product.withdraw_stock(6, order_id="order-1")
        assert product.stock_quantity == 5

    def test_withdraw_from_archived_product_fails(self):
        product = _product()
        product.archive()
        with pytest.raises(ProductUnavailable):
            product.withdraw_stock(1, order_id="order-1")

    def test_restock_returns_units(self):
        product = _product()
        product.restock(4, order_id="order-1")
        assert product.stock_quantity == 9
        assert isinstance(product._events[-1], StockRestored)

    def test_adjust_stock_cannot_go_negative(self):
        product = _product()
        with pytest.raises(ValidationError):
            product.adjust_stock(-6)


class TestProductArchival:
    def test_archive_and_restore(self):
        product = _product()
        product.archive()
        assert product.is_archived is True
        assert isinstance(product._events[-1], ProductArchived)

        product.restore()
        assert product.is_archived is False

    def test_archive_twice_fails(self):
        product = _product()
        product.archive()
        with pytest.raises(ValidationError):
            product.archive()
