"""Delivery selection captured on an order."""

from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import String

from storefront.domain import storefront


class DeliveryService(Enum):
    CDEK = "cdek"
    BOXBERRY = "boxberry"


class DeliveryType(Enum):
    PICKUP_POINT = "pvz"
    PARCEL_LOCKER = "postamat"
    COURIER = "courier"


@storefront.value_object(part_of="Order")
class DeliverySelection:
    """Where and how an order travels, plus the price quoted at checkout.

    Pickup points and parcel lockers are addressed by point code; couriers
    need a street address.
    """

    service = String(required=True, choices=DeliveryService)
    delivery_type = String(required=True, choices=DeliveryType)
    point_code = String(max_length=64)
    city = String(max_length=100)
    street = String(max_length=255)
    building = String(max_length=32)
    apartment = String(max_length=32)
    postal_code = String(max_length=20)
    cost = String(required=True, max_length=32)

    def address(self) -> dict | None:
        if self.delivery_type != DeliveryType.COURIER.value:
            return None
        return {
            "city": self.city,
            "street": self.street,
            "building": self.building,
            "apartment": self.apartment,
            "postal_code": self.postal_code,
        }


def check_destination(delivery_type, point_code, address) -> None:
    """Validate point code / address against the delivery type before pricing."""
    if delivery_type == DeliveryType.COURIER.value:
        missing = [f for f in ("city", "street", "building", "postal_code") if not (address or {}).get(f)]
        if missing:
            raise ValidationError({"delivery_address": [f"{f} is required for courier delivery" for f in missing]})
    elif not point_code:
        raise ValidationError({"delivery_point_code": ["A pickup point code is required for this delivery type"]})
