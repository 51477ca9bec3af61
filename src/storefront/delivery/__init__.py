"""Delivery gateway factory, selected by ``DELIVERY_ADAPTER``."""

from storefront.config import get_settings
from storefront.delivery.fake_adapter import FakeDeliveryGateway
from storefront.delivery.port import DeliveryGateway, DeliveryQuote

__all__ = [
    "DeliveryGateway",
    "DeliveryQuote",
    "FakeDeliveryGateway",
    "get_delivery_gateway",
    "reset_delivery_gateway",
    "set_delivery_gateway",
]

_current_gateway: DeliveryGateway | None = None


def get_delivery_gateway() -> DeliveryGateway:
    global _current_gateway
    if _current_gateway is None:
        settings = get_settings()
        if settings.delivery_adapter == "fake":
            _current_gateway = FakeDeliveryGateway(timeout_seconds=settings.gateway_timeout_seconds)
        else:
            raise ValueError(f"Unknown delivery adapter: {settings.delivery_adapter}")
    return _current_gateway


def set_delivery_gateway(gateway: DeliveryGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_delivery_gateway() -> None:
    global _current_gateway
    _current_gateway = None
