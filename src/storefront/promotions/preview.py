"""Promocode preview: what a code would take off an amount, without redeeming it."""

from protean.utils.globals import current_domain

from storefront.promotions.promocode import Promocode, PromocodeUsage
from storefront.promotions.validator import validate_promocode
from storefront.shared.clock import now
from storefront.shared.money import quantize


def preview_promocode(code: str, user_id, amount) -> dict:
    promocode = current_domain.repository_for(Promocode).find_by_code(code)
    usages = []
    if promocode is not None:
        usages = current_domain.repository_for(PromocodeUsage).for_user(promocode.id, user_id)

    amount = quantize(amount)
    discount = validate_promocode(promocode, user_id, usages, amount, now())
    return {
        "promocode_id": str(promocode.id),
        "code": promocode.code,
        "promocode_type": promocode.promocode_type,
        "discount_percentage": promocode.discount_percentage,
        "discount_amount": str(discount),
        "amount_after_discount": str(amount - discount),
    }
