"""Fixed-tariff delivery gateway for development and tests."""

from decimal import Decimal

from storefront.delivery.port import DeliveryGateway, DeliveryQuote

TEST_SIGNATURE = "test-signature"

# (service, delivery_type) -> (cost, days)
TARIFFS = {
    ("cdek", "pvz"): (Decimal("300.00"), 3),
    ("cdek", "postamat"): (Decimal("250.00"), 3),
    ("cdek", "courier"): (Decimal("500.00"), 2),
    ("boxberry", "pvz"): (Decimal("280.00"), 4),
    ("boxberry", "postamat"): (Decimal("230.00"), 4),
    ("boxberry", "courier"): (Decimal("450.00"), 3),
}


class FakeDeliveryGateway(DeliveryGateway):
    def __init__(self, timeout_seconds: int = 10) -> None:
        self.timeout_seconds = timeout_seconds
        self.should_succeed: bool = True
        self.failure_reason: str = "Carrier pricing unavailable"
        self.raise_timeout: bool = False
        self.fixed_cost: Decimal | None = None
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Carrier pricing unavailable",
        raise_timeout: bool = False,
        fixed_cost: Decimal | None = None,
    ) -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.raise_timeout = raise_timeout
        self.fixed_cost = fixed_cost

    def price(self, service, delivery_type, point_code=None, address=None) -> DeliveryQuote:
        self.calls.append(
            {
                "method": "price",
                "service": service,
                "delivery_type": delivery_type,
                "point_code": point_code,
                "address": address,
            }
        )
        if self.raise_timeout:
            raise TimeoutError(f"Delivery pricing timed out after {self.timeout_seconds}s")
        if not self.should_succeed:
            return DeliveryQuote(success=False, failure_reason=self.failure_reason)

        tariff = TARIFFS.get((service, delivery_type))
        if tariff is None:
            return DeliveryQuote(success=False, failure_reason=f"{service} does not offer {delivery_type} delivery")
        cost, days = tariff
        if self.fixed_cost is not None:
            cost = Decimal(self.fixed_cost)
        return DeliveryQuote(success=True, cost=cost, estimated_days=days)

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == TEST_SIGNATURE
