from datetime import timedelta

import pytest
from protean.exceptions import ValidationError

from storefront.promotions.events import PromocodeCreated, PromocodeRedeemed
from storefront.promotions.promocode import Promocode, PromocodeType, PromocodeUsage, usage_key
from storefront.shared.clock import now


class TestPromocodeCreation:
    def test_code_is_upper_cased(self):
        promocode = Promocode.create(code="spring10", discount_percentage="10")
        assert promocode.code == "SPRING10"
        assert promocode.promocode_type == PromocodeType.SINGLE_USE.value
        assert promocode.min_order_amount == "0.00"
        assert promocode.is_active is True
        assert isinstance(promocode._events[-1], PromocodeCreated)

    @pytest.mark.parametrize("code", ["ABC", "TOO-LONG-CODE", "WITH SPACE", "A" * 21])
    def test_code_format_is_enforced(self, code):
        with pytest.raises(ValidationError) as exc:
            Promocode.create(code=code, discount_percentage="10")
        assert "code" in exc.value.messages

    @pytest.mark.parametrize("percentage", ["0", "-5", "100.01"])
    def test_percentage_must_be_in_range(self, percentage):
        with pytest.raises(ValidationError) as exc:
            Promocode.create(code="SPRING10", discount_percentage=percentage)
        assert "discount_percentage" in exc.value.messages

    def test_full_percentage_is_allowed(self):
        assert Promocode.create(code="FREEBIE", discount_percentage="100").discount_percentage == "100"

    def test_temporary_code_requires_expiry(self):
        with pytest.raises(ValidationError) as exc:
            Promocode.create(code="FLASH24", discount_percentage="5", promocode_type="temporary")
        assert "expires_at" in exc.value.messages

    def test_max_discount_must_be_positive(self):
        with pytest.raises(ValidationError):
            Promocode.create(code="SPRING10", discount_percentage="10", max_discount_amount="0")


class TestPromocodeActivation:
    def test_deactivate_then_activate(self):
        promocode = Promocode.create(code="SPRING10", discount_percentage="10")
        promocode.deactivate()
        assert promocode.is_active is False
        promocode.activate()
        assert promocode.is_active is True

    def test_deactivate_twice_fails(self):
        promocode = Promocode.create(code="SPRING10", discount_percentage="10")
        promocode.deactivate()
        with pytest.raises(ValidationError):
            promocode.deactivate()


class TestPromocodeUsage:
    def test_single_use_key_ignores_order(self):
        promocode = Promocode.create(code="SPRING10", discount_percentage="10")
        first = PromocodeUsage.record(promocode, "user-1", "order-1")
        second = PromocodeUsage.record(promocode, "user-1", "order-2")
        assert first.usage_key == second.usage_key == f"{promocode.id}:user-1"
        assert isinstance(first._events[-1], PromocodeRedeemed)

    def test_temporary_key_includes_order(self):
        promocode = Promocode.create(
            code="FLASH24",
            discount_percentage="5",
            promocode_type="temporary",
            expires_at=now() + timedelta(days=1),
        )
        usage = PromocodeUsage.record(promocode, "user-1", "order-1")
        assert usage.usage_key == f"{promocode.id}:user-1:order-1"

    def test_usage_key_helper(self):
        assert usage_key("p", "single_use", "u", "o") == "p:u"
        assert usage_key("p", "temporary", "u", "o") == "p:u:o"
