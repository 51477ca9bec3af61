"""Payment gateway factory.

``PAYMENT_ADAPTER`` picks the adapter; tests swap it with
``set_payment_gateway`` and restore the default with ``reset_payment_gateway``.
"""

from storefront.config import get_settings
from storefront.payment.fake_adapter import FakePaymentGateway
from storefront.payment.port import PaymentGateway, PaymentInitiation, RefundResult

__all__ = [
    "FakePaymentGateway",
    "PaymentGateway",
    "PaymentInitiation",
    "RefundResult",
    "get_payment_gateway",
    "reset_payment_gateway",
    "set_payment_gateway",
]

_current_gateway: PaymentGateway | None = None


def get_payment_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        settings = get_settings()
        if settings.payment_adapter == "fake":
            _current_gateway = FakePaymentGateway(timeout_seconds=settings.gateway_timeout_seconds)
        else:
            raise ValueError(f"Unknown payment adapter: {settings.payment_adapter}")
    return _current_gateway


def set_payment_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_payment_gateway() -> None:
    global _current_gateway
    _current_gateway = None
