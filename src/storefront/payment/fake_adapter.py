"""In-process payment gateway for development and tests.

Behaviour is switched at runtime with ``configure`` (also exposed over HTTP
outside production) and every call is recorded in ``calls``.
"""

from decimal import Decimal
from uuid import uuid4

from storefront.payment.port import PaymentGateway, PaymentInitiation, RefundResult

TEST_SIGNATURE = "test-signature"


class FakePaymentGateway(PaymentGateway):
    def __init__(self, timeout_seconds: int = 10) -> None:
        self.timeout_seconds = timeout_seconds
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment rejected"
        self.raise_timeout: bool = False
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Payment rejected", raise_timeout: bool = False):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.raise_timeout = raise_timeout

    def _maybe_time_out(self, method: str) -> None:
        if self.raise_timeout:
            raise TimeoutError(f"Payment gateway {method} timed out after {self.timeout_seconds}s")

    def initiate(self, order_id: str, order_number: str, amount: Decimal, idempotency_key: str) -> PaymentInitiation:
        self.calls.append(
            {
                "method": "initiate",
                "order_id": order_id,
                "order_number": order_number,
                "amount": amount,
                "idempotency_key": idempotency_key,
            }
        )
        self._maybe_time_out("initiate")

        if self.should_succeed:
            reference = f"fake_pay_{uuid4().hex[:12]}"
            return PaymentInitiation(
                success=True,
                payment_reference=reference,
                redirect_url=f"https://pay.example.test/{reference}",
            )
        return PaymentInitiation(success=False, failure_reason=self.failure_reason)

    def refund(self, payment_reference: str, amount: Decimal, reason: str) -> RefundResult:
        self.calls.append(
            {
                "method": "refund",
                "payment_reference": payment_reference,
                "amount": amount,
                "reason": reason,
            }
        )
        self._maybe_time_out("refund")

        if self.should_succeed:
            return RefundResult(success=True, refund_reference=f"fake_ref_{uuid4().hex[:12]}")
        return RefundResult(success=False, failure_reason=self.failure_reason)

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == TEST_SIGNATURE
