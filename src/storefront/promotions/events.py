"""Domain events for promocodes and their usages."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Promocode")
class PromocodeCreated:
    __version__ = 1

    promocode_id = Identifier(required=True)
    code = String(required=True)
    promocode_type = String(required=True)
    discount_percentage = String(required=True)
    min_order_amount = String(required=True)
    max_discount_amount = String()
    expires_at = DateTime()


@storefront.event(part_of="Promocode")
class PromocodeDeactivated:
    __version__ = 1

    promocode_id = Identifier(required=True)
    code = String(required=True)


@storefront.event(part_of="Promocode")
class PromocodeActivated:
    __version__ = 1

    promocode_id = Identifier(required=True)
    code = String(required=True)


@storefront.event(part_of="PromocodeUsage")
class PromocodeRedeemed:
    __version__ = 1

    usage_id = Identifier(required=True)
    promocode_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    used_at = DateTime(required=True)
