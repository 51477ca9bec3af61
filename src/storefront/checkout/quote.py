"""Checkout pricing: turn requested (product, quantity) pairs into priced lines.

Client-sent prices are never used. Each line is priced from the product as
it is now, and one bad line rejects the whole request.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from storefront.errors import EmptyCart, ProductUnavailable
from storefront.shared.money import ZERO, quantize, to_decimal


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    sku: str
    name: str
    list_price: Decimal
    discount_percentage: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return quantize(self.unit_price * self.quantity)

    def as_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "sku": self.sku,
            "name": self.name,
            "list_price": self.list_price,
            "discount_percentage": self.discount_percentage,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
        }


def merge_requested(requested) -> "OrderedDict[str, int]":
    """Collapse repeated product ids, keeping first-seen order."""
    merged: OrderedDict[str, int] = OrderedDict()
    for product_id, quantity in requested:
        merged[str(product_id)] = merged.get(str(product_id), 0) + quantity
    return merged


def price_lines(requested, products: dict, at: datetime) -> list[PricedLine]:
    """Price each requested line against ``products`` (id -> Product).

    Raises ``EmptyCart`` when nothing resolves and ``ProductUnavailable`` when
    any line is missing, archived or short on stock.
    """
    merged = merge_requested(requested)
    if not merged or not any(pid in products for pid in merged):
        raise EmptyCart({"items": ["Your cart is empty"]})

    problems = []
    lines = []
    for product_id, quantity in merged.items():
        product = products.get(product_id)
        if product is None:
            problems.append(f"Product {product_id} does not exist")
        elif product.is_archived:
            problems.append(f"{product.name} is no longer sold")
        elif quantity > (product.stock_quantity or 0):
            problems.append(f"Only {product.stock_quantity or 0} of {product.name} left in stock")
        else:
            list_price = quantize(product.price)
            unit_price = product.effective_price(at)
            lines.append(
                PricedLine(
                    product_id=product_id,
                    sku=product.sku,
                    name=product.name,
                    list_price=list_price,
                    # Percentage actually applied, not the one on file
                    discount_percentage=(product.discount_percentage or "0") if unit_price < list_price else "0",
                    unit_price=unit_price,
                    quantity=quantity,
                )
            )
    if problems:
        raise ProductUnavailable({"items": problems})
    return lines


def subtotal_of(lines) -> Decimal:
    return quantize(sum((line.line_total for line in lines), ZERO))


def total_of(subtotal, discount, bonuses_used, delivery_cost) -> Decimal:
    return quantize(to_decimal(subtotal) - to_decimal(discount) - to_decimal(bonuses_used) + to_decimal(delivery_cost))
