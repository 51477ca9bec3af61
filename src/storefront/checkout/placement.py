"""PlaceOrder: the all-or-nothing checkout pipeline.

Gates run in a fixed order and any failure aborts the command before a
single write:

1. repeat submissions with a known checkout token return the earlier receipt
2. every requested product is re-read and re-priced (EmptyCart, ProductUnavailable)
3. the promocode is validated against the pre-bonus subtotal
4. bonuses are checked against the balance and the payable amount
5. the delivery gateway prices the shipment
6. online orders get a payment reference from the payment gateway

Only then does the handler write, inside the same unit of work: bonus debit,
promocode usage, stock withdrawal, the order itself and removal of the
consumed cart lines. The usage key and the account balance are checked again
at this point, as is the order's unique checkout key, so a concurrent
checkout that got there first wins.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalogue.product import Product
from storefront.checkout.quote import price_lines, subtotal_of
from storefront.config import get_settings
from storefront.delivery import get_delivery_gateway
from storefront.domain import storefront
from storefront.errors import (
    DeliveryPricingUnavailable,
    DuplicateCheckout,
    PaymentGatewayError,
    PromocodeAlreadyUsed,
)
from storefront.loyalty.account import LoyaltyAccount
from storefront.loyalty.policy import check_bonus_spend
from storefront.order.delivery import DeliveryService, DeliverySelection, DeliveryType, check_destination
from storefront.order.order import Order
from storefront.order.transitions import PaymentMethod
from storefront.payment import get_payment_gateway
from storefront.promotions.promocode import Promocode, PromocodeUsage
from storefront.promotions.validator import validate_promocode
from storefront.shared.clock import now
from storefront.shared.money import ZERO, quantize, to_decimal, to_str

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON array of {product_id, quantity}
    delivery_service = String(required=True, choices=DeliveryService)
    delivery_type = String(required=True, choices=DeliveryType)
    delivery_point_code = String(max_length=64)
    delivery_address = Text()  # JSON {city, street, building, apartment, postal_code}
    payment_method = String(required=True, choices=PaymentMethod)
    promocode_id = String(max_length=64)  # Promocode id or code
    bonuses_used = Integer(default=0, min_value=0)
    checkout_token = String(max_length=255)


def _requested_items(raw) -> list[tuple[str, int]]:
    try:
        data = json.loads(raw) if raw else []
    except (TypeError, ValueError):
        raise ValidationError({"items": ["Items must be a JSON array"]}) from None
    if not isinstance(data, list):
        raise ValidationError({"items": ["Items must be a JSON array"]})

    requested = []
    for entry in data:
        if not isinstance(entry, dict) or not entry.get("product_id"):
            raise ValidationError({"items": ["Each item needs a product_id"]})
        quantity = entry.get("quantity", 1)
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValidationError({"items": ["Quantities must be positive integers"]})
        requested.append((str(entry["product_id"]), quantity))
    return requested


def _delivery_address(raw) -> dict | None:
    if not raw:
        return None
    try:
        address = json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationError({"delivery_address": ["Address must be a JSON object"]}) from None
    if not isinstance(address, dict):
        raise ValidationError({"delivery_address": ["Address must be a JSON object"]})
    return address


def _price_delivery(command, address):
    gateway = get_delivery_gateway()
    try:
        quote = gateway.price(
            command.delivery_service,
            command.delivery_type,
            point_code=command.delivery_point_code,
            address=address,
        )
    except TimeoutError as exc:
        raise DeliveryPricingUnavailable({"delivery": [f"Delivery pricing timed out: {exc}"]}) from exc
    if not quote.success:
        raise DeliveryPricingUnavailable({"delivery": [quote.failure_reason or "Delivery pricing failed"]})
    return quantize(quote.cost)


def _initiate_payment(order, idempotency_key) -> str:
    gateway = get_payment_gateway()
    try:
        result = gateway.initiate(
            order_id=str(order.id),
            order_number=order.order_number,
            amount=to_decimal(order.total),
            idempotency_key=idempotency_key,
        )
    except TimeoutError as exc:
        raise PaymentGatewayError({"payment": [f"Payment initiation timed out: {exc}"]}) from exc
    if not result.success:
        raise PaymentGatewayError({"payment": [result.failure_reason or "Payment initiation failed"]})
    return result.payment_reference


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        orders = current_domain.repository_for(Order)
        if command.checkout_token:
            existing = orders.find_by_checkout_token(command.user_id, command.checkout_token)
            if existing is not None:
                logger.info("Repeated checkout", order_id=str(existing.id), checkout_token=command.checkout_token)
                return existing.receipt()

        settings = get_settings()
        at = now()
        user_id = str(command.user_id)

        # Cart re-authority and subtotal
        requested = _requested_items(command.items)
        products = current_domain.repository_for(Product)
        catalog = products.find_many(product_id for product_id, _ in requested)
        lines = price_lines(requested, catalog, at)
        subtotal = subtotal_of(lines)

        # Promocode
        promocode = None
        discount = ZERO
        usages = current_domain.repository_for(PromocodeUsage)
        if command.promocode_id:
            promocode = current_domain.repository_for(Promocode).resolve(command.promocode_id)
            history = usages.for_user(promocode.id, user_id) if promocode else []
            discount = validate_promocode(promocode, user_id, history, subtotal, at)

        # Bonuses
        bonuses = command.bonuses_used or 0
        accounts = current_domain.repository_for(LoyaltyAccount)
        check_bonus_spend(
            bonuses,
            accounts.for_user_or_open(user_id).balance,
            subtotal - discount,
            settings.bonus_max_share_percent,
        )

        # Delivery pricing
        address = _delivery_address(command.delivery_address)
        check_destination(command.delivery_type, command.delivery_point_code, address)
        delivery_cost = _price_delivery(command, address)

        courier = command.delivery_type == DeliveryType.COURIER.value
        delivery = DeliverySelection(
            service=command.delivery_service,
            delivery_type=command.delivery_type,
            point_code=None if courier else command.delivery_point_code,
            city=address.get("city") if courier else None,
            street=address.get("street") if courier else None,
            building=address.get("building") if courier else None,
            apartment=address.get("apartment") if courier else None,
            postal_code=address.get("postal_code") if courier else None,
            cost=to_str(delivery_cost),
        )
        order = Order.place(
            user_id=user_id,
            lines=[line.as_dict() for line in lines],
            subtotal=subtotal,
            discount_amount=discount,
            bonuses_used=bonuses,
            delivery=delivery,
            payment_method=command.payment_method,
            promocode=promocode,
            checkout_token=command.checkout_token,
        )

        # Payment initiation
        if command.payment_method == PaymentMethod.ONLINE.value:
            reference = _initiate_payment(order, order.checkout_key or str(order.id))
            order.attach_payment_reference(reference)

        # Commit
        if bonuses:
            account = accounts.for_user_or_open(user_id)
            account.debit(bonuses, order.id)
            accounts.add(account)

        if promocode is not None:
            if promocode.is_single_use and usages.for_user(promocode.id, user_id):
                raise PromocodeAlreadyUsed({"promocode": ["You have already used this promocode"]})
            try:
                usages.add(PromocodeUsage.record(promocode, user_id, order.id))
            except ValidationError as exc:
                raise PromocodeAlreadyUsed({"promocode": ["You have already used this promocode"]}) from exc

        for line in lines:
            product = catalog[line.product_id]
            product.withdraw_stock(line.quantity, order.id)
            products.add(product)

        try:
            orders.add(order)
        except ValidationError as exc:
            if "checkout_key" not in exc.messages:
                raise
            raise DuplicateCheckout({"checkout_token": ["This checkout was already placed"]}) from exc

        carts = current_domain.repository_for(Cart)
        cart = carts.for_user(user_id)
        if cart is not None and cart.check_out([line.product_id for line in lines], order.id):
            carts.add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=user_id,
            total=order.total,
            payment_method=order.payment_method,
            promocode_id=order.promocode_id,
            bonuses_used=bonuses,
        )
        return order.receipt()
