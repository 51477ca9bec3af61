"""FastAPI routes for the storefront."""

import json

from fastapi import APIRouter, Depends, HTTPException, Header
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.api.deps import current_user_id
from storefront.api.schemas import (
    AddProductRequest,
    AddToCartRequest,
    AdjustStockRequest,
    AutoCompleteRequest,
    AutoCompleteResponse,
    BalanceResponse,
    BonusEntryResponse,
    CancelOrderRequest,
    CartLineResponse,
    CartResponse,
    CheckoutRequest,
    ConfigureGatewayRequest,
    CreatePromocodeRequest,
    DeclinePaymentRequest,
    DeliveryQuoteRequest,
    DeliveryQuoteResponse,
    DeliveryWebhookRequest,
    DispatchOrderRequest,
    GatewayConfigResponse,
    GrantBonusesRequest,
    LoyaltyAccountResponse,
    PaymentWebhookRequest,
    ProductIdResponse,
    ProductResponse,
    ProductSetRequest,
    ProductSetResponse,
    PromocodeIdResponse,
    PromocodePreviewResponse,
    ReceiptResponse,
    StatusResponse,
    UpdateCartQuantityRequest,
    UpdatePricingRequest,
    ValidatePromocodeRequest,
)
from storefront.cart.cart import Cart
from storefront.cart.comparison import AddToComparison, ComparisonList, RemoveFromComparison
from storefront.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity
from storefront.cart.wishlist import AddToWishlist, RemoveFromWishlist, Wishlist
from storefront.catalogue.management import (
    AddProduct,
    AdjustStock,
    ArchiveProduct,
    RestoreProduct,
    UpdateProductPricing,
)
from storefront.catalogue.product import Product
from storefront.checkout.placement import PlaceOrder
from storefront.config import get_settings
from storefront.delivery import FakeDeliveryGateway, get_delivery_gateway
from storefront.errors import DeliveryPricingUnavailable
from storefront.loyalty.account import LoyaltyAccount
from storefront.loyalty.grants import GrantBonuses
from storefront.order.cancellation import CancellationActor, CancelOrder
from storefront.order.completion import CompleteDeliveredOrders, CompleteOrder
from storefront.order.delivery import check_destination
from storefront.order.fulfillment import ProcessDeliveryCallback, RecordDelivery, RecordDispatch
from storefront.order.order import Order
from storefront.order.payment import ConfirmPayment, DeclinePayment, ProcessPaymentCallback
from storefront.payment import FakePaymentGateway, get_payment_gateway
from storefront.promotions.management import ActivatePromocode, CreatePromocode, DeactivatePromocode
from storefront.promotions.preview import preview_promocode
from storefront.shared.clock import now
from storefront.shared.money import ZERO, quantize, to_str


def _product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        product_id=str(product.id),
        sku=product.sku,
        name=product.name,
        description=product.description,
        price=product.price,
        effective_price=to_str(product.effective_price()),
        discount_percentage=product.discount_percentage,
        discount_starts_at=product.discount_starts_at,
        discount_ends_at=product.discount_ends_at,
        stock_quantity=product.stock_quantity or 0,
        is_archived=bool(product.is_archived),
    )


def _ensure_non_production(area: str) -> None:
    if get_settings().is_production:
        raise HTTPException(status_code=403, detail=f"{area} gateway configuration not available in production")


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.get("", response_model=list[ProductResponse])
async def list_products(include_archived: bool = False) -> list[ProductResponse]:
    products = current_domain.repository_for(Product).listing(include_archived)
    return [_product_response(p) for p in products]


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    return _product_response(current_domain.repository_for(Product).get(product_id))


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def add_product(body: AddProductRequest) -> ProductIdResponse:
    command = AddProduct(
        sku=body.sku,
        name=body.name,
        price=str(body.price),
        description=body.description,
        stock_quantity=body.stock_quantity,
        discount_percentage=str(body.discount_percentage),
        discount_starts_at=body.discount_starts_at,
        discount_ends_at=body.discount_ends_at,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.put("/{product_id}/pricing", response_model=StatusResponse)
async def update_pricing(product_id: str, body: UpdatePricingRequest) -> StatusResponse:
    command = UpdateProductPricing(
        product_id=product_id,
        price=str(body.price),
        discount_percentage=str(body.discount_percentage),
        discount_starts_at=body.discount_starts_at,
        discount_ends_at=body.discount_ends_at,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@product_router.post("/{product_id}/stock", response_model=StatusResponse)
async def adjust_stock(product_id: str, body: AdjustStockRequest) -> StatusResponse:
    command = AdjustStock(product_id=product_id, delta=body.delta, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@product_router.post("/{product_id}/archive", response_model=StatusResponse)
async def archive_product(product_id: str) -> StatusResponse:
    current_domain.process(ArchiveProduct(product_id=product_id), asynchronous=False)
    return StatusResponse(status="archived")


@product_router.post("/{product_id}/restore", response_model=StatusResponse)
async def restore_product(product_id: str) -> StatusResponse:
    current_domain.process(RestoreProduct(product_id=product_id), asynchronous=False)
    return StatusResponse(status="restored")


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


def _cart_response(user_id: str) -> CartResponse:
    cart = current_domain.repository_for(Cart).for_user(user_id)
    if cart is None or not cart.items:
        return CartResponse(user_id=user_id)

    products = current_domain.repository_for(Product).find_many(str(i.product_id) for i in cart.items)
    lines = []
    subtotal = ZERO
    at = now()
    for item in cart.items:
        product = products.get(str(item.product_id))
        if product is None:
            lines.append(CartLineResponse(product_id=str(item.product_id), quantity=item.quantity, available=False))
            continue
        unit_price = product.effective_price(at)
        line_total = quantize(unit_price * item.quantity)
        available = product.can_supply(item.quantity)
        if available:
            subtotal += line_total
        lines.append(
            CartLineResponse(
                product_id=str(item.product_id),
                quantity=item.quantity,
                name=product.name,
                unit_price=to_str(unit_price),
                line_total=to_str(line_total),
                available=available,
            )
        )
    return CartResponse(user_id=user_id, items=lines, subtotal=to_str(subtotal))


@cart_router.get("", response_model=CartResponse)
async def get_cart(user_id: str = Depends(current_user_id)) -> CartResponse:
    return _cart_response(user_id)


@cart_router.post("/items", response_model=CartResponse)
async def add_cart_item(body: AddToCartRequest, user_id: str = Depends(current_user_id)) -> CartResponse:
    command = AddToCart(user_id=user_id, product_id=body.product_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return _cart_response(user_id)


@cart_router.patch("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str,
    body: UpdateCartQuantityRequest,
    user_id: str = Depends(current_user_id),
) -> CartResponse:
    command = UpdateCartQuantity(user_id=user_id, product_id=product_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return _cart_response(user_id)


@cart_router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(product_id: str, user_id: str = Depends(current_user_id)) -> CartResponse:
    current_domain.process(RemoveFromCart(user_id=user_id, product_id=product_id), asynchronous=False)
    return _cart_response(user_id)


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(user_id: str = Depends(current_user_id)) -> CartResponse:
    current_domain.process(ClearCart(user_id=user_id), asynchronous=False)
    return _cart_response(user_id)


# ---------------------------------------------------------------------------
# Wishlist and Comparison Routers
# ---------------------------------------------------------------------------
wishlist_router = APIRouter(prefix="/wishlist", tags=["wishlist"])
comparison_router = APIRouter(prefix="/comparison", tags=["comparison"])


def _wishlist_response(user_id: str) -> ProductSetResponse:
    wishlist = current_domain.repository_for(Wishlist).for_user(user_id)
    return ProductSetResponse(user_id=user_id, product_ids=wishlist.product_ids() if wishlist else [])


def _comparison_response(user_id: str) -> ProductSetResponse:
    comparison = current_domain.repository_for(ComparisonList).for_user(user_id)
    return ProductSetResponse(user_id=user_id, product_ids=comparison.product_ids() if comparison else [])


@wishlist_router.get("", response_model=ProductSetResponse)
async def get_wishlist(user_id: str = Depends(current_user_id)) -> ProductSetResponse:
    return _wishlist_response(user_id)


@wishlist_router.post("/items", response_model=ProductSetResponse)
async def add_wishlist_item(body: ProductSetRequest, user_id: str = Depends(current_user_id)) -> ProductSetResponse:
    current_domain.process(AddToWishlist(user_id=user_id, product_id=body.product_id), asynchronous=False)
    return _wishlist_response(user_id)


@wishlist_router.delete("/items/{product_id}", response_model=ProductSetResponse)
async def remove_wishlist_item(product_id: str, user_id: str = Depends(current_user_id)) -> ProductSetResponse:
    current_domain.process(RemoveFromWishlist(user_id=user_id, product_id=product_id), asynchronous=False)
    return _wishlist_response(user_id)


@comparison_router.get("", response_model=ProductSetResponse)
async def get_comparison(user_id: str = Depends(current_user_id)) -> ProductSetResponse:
    return _comparison_response(user_id)


@comparison_router.post("/items", response_model=ProductSetResponse)
async def add_comparison_item(
    body: ProductSetRequest,
    user_id: str = Depends(current_user_id),
) -> ProductSetResponse:
    current_domain.process(AddToComparison(user_id=user_id, product_id=body.product_id), asynchronous=False)
    return _comparison_response(user_id)


@comparison_router.delete("/items/{product_id}", response_model=ProductSetResponse)
async def remove_comparison_item(product_id: str, user_id: str = Depends(current_user_id)) -> ProductSetResponse:
    current_domain.process(RemoveFromComparison(user_id=user_id, product_id=product_id), asynchronous=False)
    return _comparison_response(user_id)


# ---------------------------------------------------------------------------
# Promocode Router
# ---------------------------------------------------------------------------
promocode_router = APIRouter(prefix="/promocodes", tags=["promocodes"])


@promocode_router.post("", status_code=201, response_model=PromocodeIdResponse)
async def create_promocode(
    body: CreatePromocodeRequest,
    user_id: str = Depends(current_user_id),
) -> PromocodeIdResponse:
    command = CreatePromocode(
        code=body.code,
        discount_percentage=str(body.discount_percentage),
        promocode_type=body.promocode_type,
        min_order_amount=str(body.min_order_amount),
        max_discount_amount=str(body.max_discount_amount) if body.max_discount_amount is not None else None,
        expires_at=body.expires_at,
        created_by=user_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return PromocodeIdResponse(promocode_id=result)


@promocode_router.post("/validate", response_model=PromocodePreviewResponse)
async def validate_promocode(
    body: ValidatePromocodeRequest,
    user_id: str = Depends(current_user_id),
) -> PromocodePreviewResponse:
    return PromocodePreviewResponse(**preview_promocode(body.code, user_id, body.amount))


@promocode_router.post("/{promocode_id}/deactivate", response_model=StatusResponse)
async def deactivate_promocode(promocode_id: str) -> StatusResponse:
    current_domain.process(DeactivatePromocode(promocode_id=promocode_id), asynchronous=False)
    return StatusResponse(status="inactive")


@promocode_router.post("/{promocode_id}/activate", response_model=StatusResponse)
async def activate_promocode(promocode_id: str) -> StatusResponse:
    current_domain.process(ActivatePromocode(promocode_id=promocode_id), asynchronous=False)
    return StatusResponse(status="active")


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _own_order(order_id: str, user_id: str) -> Order:
    order = current_domain.repository_for(Order).get(order_id)
    if str(order.user_id) != user_id:
        raise ObjectNotFoundError({"order": [f"Order {order_id} not found"]})
    return order


@order_router.post("/checkout", status_code=201, response_model=ReceiptResponse)
async def checkout(body: CheckoutRequest, user_id: str = Depends(current_user_id)) -> ReceiptResponse:
    command = PlaceOrder(
        user_id=user_id,
        items=json.dumps([{"product_id": i.product_id, "quantity": i.quantity} for i in body.items]),
        delivery_service=body.delivery_service,
        delivery_type=body.delivery_type,
        delivery_point_code=body.delivery_point_code,
        delivery_address=body.delivery_address.model_dump_json() if body.delivery_address else None,
        payment_method=body.payment_method,
        promocode_id=body.promocode_id,
        bonuses_used=body.bonuses_used,
        checkout_token=body.checkout_token,
    )
    receipt = current_domain.process(command, asynchronous=False)
    return ReceiptResponse(**receipt)


@order_router.get("")
async def list_orders(user_id: str = Depends(current_user_id)) -> list[dict]:
    return [order.details() for order in current_domain.repository_for(Order).list_for_user(user_id)]


@order_router.post("/maintenance/auto-complete", response_model=AutoCompleteResponse)
async def auto_complete_orders(body: AutoCompleteRequest) -> AutoCompleteResponse:
    """Complete orders delivered long enough ago. Meant for a periodic scheduler."""
    command = CompleteDeliveredOrders(older_than_days=body.older_than_days)
    result = current_domain.process(command, asynchronous=False)
    return AutoCompleteResponse(completed_count=result or 0)


@order_router.get("/{order_id}")
async def get_order(order_id: str, user_id: str = Depends(current_user_id)) -> dict:
    return _own_order(order_id, user_id).details()


@order_router.post("/{order_id}/cancel", response_model=ReceiptResponse)
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest,
    user_id: str = Depends(current_user_id),
) -> ReceiptResponse:
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason,
        cancelled_by=CancellationActor.CUSTOMER,
        requested_by=user_id,
    )
    return ReceiptResponse(**current_domain.process(command, asynchronous=False))


@order_router.post("/{order_id}/staff-cancel", response_model=ReceiptResponse)
async def staff_cancel_order(order_id: str, body: CancelOrderRequest) -> ReceiptResponse:
    command = CancelOrder(order_id=order_id, reason=body.reason, cancelled_by=CancellationActor.STAFF)
    return ReceiptResponse(**current_domain.process(command, asynchronous=False))


@order_router.post("/{order_id}/dispatch", response_model=ReceiptResponse)
async def dispatch_order(order_id: str, body: DispatchOrderRequest) -> ReceiptResponse:
    command = RecordDispatch(order_id=order_id, tracking_number=body.tracking_number)
    return ReceiptResponse(**current_domain.process(command, asynchronous=False))


@order_router.post("/{order_id}/deliver", response_model=ReceiptResponse)
async def deliver_order(order_id: str) -> ReceiptResponse:
    return ReceiptResponse(**current_domain.process(RecordDelivery(order_id=order_id), asynchronous=False))


@order_router.post("/{order_id}/complete", response_model=ReceiptResponse)
async def complete_order(order_id: str) -> ReceiptResponse:
    return ReceiptResponse(**current_domain.process(CompleteOrder(order_id=order_id), asynchronous=False))


@order_router.post("/{order_id}/payment/confirm", response_model=ReceiptResponse)
async def confirm_payment(order_id: str) -> ReceiptResponse:
    return ReceiptResponse(**current_domain.process(ConfirmPayment(order_id=order_id), asynchronous=False))


@order_router.post("/{order_id}/payment/decline", response_model=ReceiptResponse)
async def decline_payment(order_id: str, body: DeclinePaymentRequest) -> ReceiptResponse:
    command = DeclinePayment(order_id=order_id, reason=body.reason)
    return ReceiptResponse(**current_domain.process(command, asynchronous=False))


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/webhook", response_model=StatusResponse)
async def payment_webhook(
    body: PaymentWebhookRequest,
    x_gateway_signature: str = Header(default=""),
) -> StatusResponse:
    """Paid/failed callback from the payment processor. Safe to redeliver."""
    if not get_payment_gateway().verify_webhook_signature(body.model_dump_json(), x_gateway_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    command = ProcessPaymentCallback(
        payment_reference=body.payment_reference,
        status=body.status,
        failure_reason=body.failure_reason,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="processed")


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_payment_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Switch the fake payment gateway between success and failure (non-production only)."""
    _ensure_non_production("Payment")
    gateway = get_payment_gateway()
    if not isinstance(gateway, FakePaymentGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for the fake gateway")

    gateway.configure(body.should_succeed, body.failure_reason, body.raise_timeout)
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        raise_timeout=gateway.raise_timeout,
    )


# ---------------------------------------------------------------------------
# Delivery Router
# ---------------------------------------------------------------------------
delivery_router = APIRouter(prefix="/delivery", tags=["delivery"])


@delivery_router.post("/quote", response_model=DeliveryQuoteResponse)
async def quote_delivery(body: DeliveryQuoteRequest) -> DeliveryQuoteResponse:
    address = body.delivery_address.model_dump() if body.delivery_address else None
    check_destination(body.delivery_type, body.delivery_point_code, address)
    try:
        quote = get_delivery_gateway().price(
            body.delivery_service,
            body.delivery_type,
            point_code=body.delivery_point_code,
            address=address,
        )
    except TimeoutError as exc:
        raise DeliveryPricingUnavailable({"delivery": [f"Delivery pricing timed out: {exc}"]}) from exc
    if not quote.success:
        raise DeliveryPricingUnavailable({"delivery": [quote.failure_reason or "Delivery pricing failed"]})
    return DeliveryQuoteResponse(
        delivery_service=body.delivery_service,
        delivery_type=body.delivery_type,
        cost=to_str(quote.cost),
        estimated_days=quote.estimated_days,
    )


@delivery_router.post("/webhook", response_model=StatusResponse)
async def delivery_webhook(
    body: DeliveryWebhookRequest,
    x_carrier_signature: str = Header(default=""),
) -> StatusResponse:
    if not get_delivery_gateway().verify_webhook_signature(body.model_dump_json(), x_carrier_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    command = ProcessDeliveryCallback(tracking_number=body.tracking_number, status=body.status)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="processed")


@delivery_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_delivery_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    _ensure_non_production("Delivery")
    gateway = get_delivery_gateway()
    if not isinstance(gateway, FakeDeliveryGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for the fake gateway")

    gateway.configure(body.should_succeed, body.failure_reason, body.raise_timeout)
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        raise_timeout=gateway.raise_timeout,
    )


# ---------------------------------------------------------------------------
# Loyalty Router
# ---------------------------------------------------------------------------
loyalty_router = APIRouter(prefix="/loyalty", tags=["loyalty"])


@loyalty_router.get("", response_model=LoyaltyAccountResponse)
async def get_loyalty_account(user_id: str = Depends(current_user_id)) -> LoyaltyAccountResponse:
    account = current_domain.repository_for(LoyaltyAccount).for_user_or_open(user_id)
    entries = sorted(account.entries, key=lambda e: e.recorded_at, reverse=True)
    return LoyaltyAccountResponse(
        user_id=user_id,
        balance=account.balance or 0,
        entries=[
            BonusEntryResponse(
                order_id=str(e.order_id) if e.order_id else None,
                kind=e.kind,
                amount=e.amount,
                note=e.note,
                recorded_at=e.recorded_at,
            )
            for e in entries
        ],
    )


@loyalty_router.post("/grants", response_model=BalanceResponse)
async def grant_bonuses(body: GrantBonusesRequest) -> BalanceResponse:
    command = GrantBonuses(user_id=body.user_id, amount=body.amount, note=body.note)
    balance = current_domain.process(command, asynchronous=False)
    return BalanceResponse(user_id=body.user_id, balance=balance)
