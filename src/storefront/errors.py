"""Storefront error taxonomy.

Validation failures subclass Protean's ``ValidationError`` so they carry a
``messages`` dict and roll back the unit of work like any other rejected
command. Gateway failures are retryable by the caller and are never retried
automatically.
"""

from protean.exceptions import ValidationError


class CheckoutError(ValidationError):
    """A checkout request was rejected; nothing was written."""


class EmptyCart(CheckoutError):
    pass


class ProductUnavailable(CheckoutError):
    pass


class PromocodeInvalid(CheckoutError):
    pass


class PromocodeAlreadyUsed(PromocodeInvalid):
    pass


class PromocodeMinOrderNotMet(CheckoutError):
    pass


class InsufficientBonusBalance(CheckoutError):
    pass


class DuplicateCheckout(CheckoutError):
    """Another request with the same checkout token committed first."""


class InvalidOrderTransition(ValidationError):
    """The requested lifecycle event is not allowed from the order's current state."""


class GatewayError(Exception):
    """An external collaborator failed or timed out."""

    retryable = True

    def __init__(self, messages: dict) -> None:
        self.messages = messages
        super().__init__(messages)


class DeliveryPricingUnavailable(GatewayError):
    pass


class PaymentGatewayError(GatewayError):
    pass
