"""Delivery pricing port. The carrier behind it is opaque."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class DeliveryQuote:
    success: bool
    cost: Decimal | None = None
    estimated_days: int | None = None
    failure_reason: str | None = None


class DeliveryGateway(ABC):
    @abstractmethod
    def price(
        self,
        service: str,
        delivery_type: str,
        point_code: str | None = None,
        address: dict | None = None,
    ) -> DeliveryQuote:
        """Quote a delivery to a pickup point or an address. May raise ``TimeoutError``."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        ...
