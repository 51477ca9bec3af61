"""Pydantic request/response schemas for the storefront API.

These are the external contract. Handlers receive Protean commands built from
them, never the schemas themselves.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, model_validator


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class AddressSchema(BaseModel):
    city: str = Field(min_length=1)
    street: str = Field(min_length=1)
    building: str = Field(min_length=1)
    apartment: str | None = None
    postal_code: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class AddProductRequest(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    price: Decimal = Field(gt=0, decimal_places=2)
    description: str | None = None
    stock_quantity: int = Field(ge=0, default=0)
    discount_percentage: Decimal = Field(ge=0, le=100, default=Decimal("0"))
    discount_starts_at: datetime | None = None
    discount_ends_at: datetime | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "sku": "KB-001",
                    "name": "Mechanical keyboard",
                    "price": "4990.00",
                    "stock_quantity": 25,
                }
            ]
        }
    }


class UpdatePricingRequest(BaseModel):
    price: Decimal = Field(gt=0, decimal_places=2)
    discount_percentage: Decimal = Field(ge=0, le=100, default=Decimal("0"))
    discount_starts_at: datetime | None = None
    discount_ends_at: datetime | None = None


class AdjustStockRequest(BaseModel):
    delta: int
    reason: str | None = None


class ProductIdResponse(BaseModel):
    product_id: str


class ProductResponse(BaseModel):
    product_id: str
    sku: str
    name: str
    description: str | None = None
    price: str
    effective_price: str
    discount_percentage: str
    discount_starts_at: datetime | None = None
    discount_ends_at: datetime | None = None
    stock_quantity: int
    is_archived: bool


# ---------------------------------------------------------------------------
# Cart, wishlist, comparison
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class UpdateCartQuantityRequest(BaseModel):
    quantity: int = Field(ge=0)


class CartLineResponse(BaseModel):
    product_id: str
    quantity: int
    name: str | None = None
    unit_price: str | None = None
    line_total: str | None = None
    available: bool = True


class CartResponse(BaseModel):
    user_id: str
    items: list[CartLineResponse] = []
    subtotal: str = "0.00"


class ProductSetRequest(BaseModel):
    product_id: str


class ProductSetResponse(BaseModel):
    user_id: str
    product_ids: list[str] = []


# ---------------------------------------------------------------------------
# Promocodes
# ---------------------------------------------------------------------------
class CreatePromocodeRequest(BaseModel):
    code: str = Field(pattern=r"^[A-Za-z0-9]{4,20}$")
    discount_percentage: Decimal = Field(gt=0, le=100)
    promocode_type: Literal["single_use", "temporary"] = "single_use"
    min_order_amount: Decimal = Field(ge=0, default=Decimal("0"))
    max_discount_amount: Decimal | None = Field(default=None, gt=0)
    expires_at: datetime | None = None

    @model_validator(mode="after")
    def temporary_codes_expire(self):
        if self.promocode_type == "temporary" and self.expires_at is None:
            raise ValueError("expires_at is required for temporary promocodes")
        return self


class PromocodeIdResponse(BaseModel):
    promocode_id: str


class ValidatePromocodeRequest(BaseModel):
    code: str
    amount: Decimal = Field(ge=0)


class PromocodePreviewResponse(BaseModel):
    promocode_id: str
    code: str
    promocode_type: str
    discount_percentage: str
    discount_amount: str
    amount_after_discount: str


# ---------------------------------------------------------------------------
# Checkout and orders
# ---------------------------------------------------------------------------
class CheckoutItemSchema(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)
    # Accepted for compatibility and ignored: prices come from the catalog
    price: Decimal | None = None


class CheckoutRequest(BaseModel):
    items: list[CheckoutItemSchema] = Field(min_length=1)
    delivery_service: Literal["cdek", "boxberry"]
    delivery_type: Literal["pvz", "postamat", "courier"]
    delivery_point_code: str | None = None
    delivery_address: AddressSchema | None = None
    payment_method: Literal["online", "on_delivery"]
    promocode_id: str | None = None
    bonuses_used: int = Field(ge=0, default=0)
    checkout_token: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def destination_matches_delivery_type(self):
        if self.delivery_type == "courier" and self.delivery_address is None:
            raise ValueError("delivery_address is required for courier delivery")
        if self.delivery_type in ("pvz", "postamat") and not self.delivery_point_code:
            raise ValueError("delivery_point_code is required for pickup point and parcel locker delivery")
        return self

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "5b1c...", "quantity": 2}],
                    "delivery_service": "cdek",
                    "delivery_type": "pvz",
                    "delivery_point_code": "MSK123",
                    "payment_method": "online",
                    "promocode_id": "SPRING10",
                    "bonuses_used": 50,
                    "checkout_token": "7f0e2c7a-checkout",
                }
            ]
        }
    }


class ReceiptResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_status: str
    payment_method: str
    payment_reference: str | None = None
    subtotal: str
    discount_amount: str
    bonuses_used: int
    delivery_cost: str
    total: str


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class DispatchOrderRequest(BaseModel):
    tracking_number: str | None = Field(default=None, max_length=255)


class DeclinePaymentRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class AutoCompleteRequest(BaseModel):
    older_than_days: int | None = Field(default=None, ge=0)


class AutoCompleteResponse(BaseModel):
    completed_count: int


# ---------------------------------------------------------------------------
# Gateways and webhooks
# ---------------------------------------------------------------------------
class PaymentWebhookRequest(BaseModel):
    payment_reference: str
    status: Literal["paid", "failed"]
    failure_reason: str | None = None


class DeliveryWebhookRequest(BaseModel):
    tracking_number: str
    status: str


class DeliveryQuoteRequest(BaseModel):
    delivery_service: Literal["cdek", "boxberry"]
    delivery_type: Literal["pvz", "postamat", "courier"]
    delivery_point_code: str | None = None
    delivery_address: AddressSchema | None = None


class DeliveryQuoteResponse(BaseModel):
    delivery_service: str
    delivery_type: str
    cost: str
    estimated_days: int | None = None


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Gateway unavailable"
    raise_timeout: bool = False


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
    raise_timeout: bool


# ---------------------------------------------------------------------------
# Loyalty
# ---------------------------------------------------------------------------
class BonusEntryResponse(BaseModel):
    order_id: str | None = None
    kind: str
    amount: int
    note: str | None = None
    recorded_at: datetime | None = None


class LoyaltyAccountResponse(BaseModel):
    user_id: str
    balance: int
    entries: list[BonusEntryResponse] = []


class GrantBonusesRequest(BaseModel):
    user_id: str
    amount: int = Field(ge=1)
    note: str | None = Field(default=None, max_length=255)


class BalanceResponse(BaseModel):
    user_id: str
    balance: int
