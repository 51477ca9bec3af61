"""Payment gateway port.

The processor is opaque: checkout asks it to start a payment and gets back a
reference; the outcome arrives later as a paid/failed callback keyed by that
reference.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PaymentInitiation:
    success: bool
    payment_reference: str | None = None
    redirect_url: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    success: bool
    refund_reference: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    @abstractmethod
    def initiate(
        self,
        order_id: str,
        order_number: str,
        amount: Decimal,
        idempotency_key: str,
    ) -> PaymentInitiation:
        """Start an online payment. May raise ``TimeoutError``."""
        ...

    @abstractmethod
    def refund(self, payment_reference: str, amount: Decimal, reason: str) -> RefundResult:
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        ...
