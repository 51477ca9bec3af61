from datetime import UTC, datetime, timedelta
from decimal import Decimal

from storefront.catalogue.pricing import discount_active, effective_price

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class TestDiscountWindow:
    def test_no_window_means_no_discount(self):
        assert discount_active(None, None, NOW) is False

    def test_inside_closed_window(self):
        assert discount_active(NOW - timedelta(days=1), NOW + timedelta(days=1), NOW) is True

    def test_window_bounds_are_inclusive(self):
        assert discount_active(NOW, NOW, NOW) is True

    def test_before_window(self):
        assert discount_active(NOW + timedelta(hours=1), None, NOW) is False

    def test_after_window(self):
        assert discount_active(None, NOW - timedelta(seconds=1), NOW) is False

    def test_open_ended_start(self):
        assert discount_active(None, NOW + timedelta(days=30), NOW) is True

    def test_naive_datetimes_are_treated_as_utc(self):
        start = datetime(2026, 3, 1, 11, 0)
        assert discount_active(start, None, NOW) is True


class TestEffectivePrice:
    def test_list_price_without_window(self):
        assert effective_price("1000.00", "20", None, None, NOW) == Decimal("1000.00")

    def test_discount_applies_inside_window(self):
        price = effective_price("1000.00", "20", NOW - timedelta(days=1), NOW + timedelta(days=1), NOW)
        assert price == Decimal("800.00")

    def test_zero_percentage_ignores_window(self):
        price = effective_price("499.99", "0", NOW - timedelta(days=1), None, NOW)
        assert price == Decimal("499.99")

    def test_result_is_rounded_to_cents(self):
        price = effective_price("99.99", "15", NOW - timedelta(days=1), None, NOW)
        # 99.99 * 0.85 = 84.9915
        assert price == Decimal("84.99")

    def test_full_discount(self):
        assert effective_price("10.00", "100", NOW, None, NOW) == Decimal("0.00")
