"""Product aggregate: the catalog record a cart line or order line points at.

Prices are decimals stored as strings. A product carries an optional discount
window; outside of it the list price applies. Archived products stay readable
but cannot be added to carts or ordered.
"""

from decimal import Decimal

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String, Text

from storefront.catalogue.events import (
    ProductAdded,
    ProductArchived,
    ProductPricingUpdated,
    ProductRestored,
    StockAdjusted,
    StockRestored,
    StockWithdrawn,
)
from storefront.catalogue.pricing import HUNDRED, effective_price
from storefront.domain import storefront
from storefront.errors import ProductUnavailable
from storefront.shared.clock import as_utc, now
from storefront.shared.money import to_decimal, to_str


@storefront.aggregate
class Product:
    sku = String(required=True, max_length=64, unique=True)
    name = String(required=True, max_length=255)
    description = Text()
    price = String(required=True, max_length=32)
    discount_percentage = String(max_length=8, default="0")
    discount_starts_at = DateTime()
    discount_ends_at = DateTime()
    stock_quantity = Integer(default=0, min_value=0)
    is_archived = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def price_must_be_positive(self):
        try:
            price = to_decimal(self.price)
        except ValueError:
            raise ValidationError({"price": ["Price must be a decimal amount"]}) from None
        if price <= 0:
            raise ValidationError({"price": ["Price must be greater than zero"]})

    @invariant.post
    def discount_percentage_must_be_a_percentage(self):
        try:
            percentage = to_decimal(self.discount_percentage)
        except ValueError:
            raise ValidationError({"discount_percentage": ["Discount must be a number"]}) from None
        if percentage < 0 or percentage > HUNDRED:
            raise ValidationError({"discount_percentage": ["Discount must be between 0 and 100"]})

    @invariant.post
    def discount_window_must_be_ordered(self):
        if self.discount_starts_at and self.discount_ends_at:
            if as_utc(self.discount_starts_at) > as_utc(self.discount_ends_at):
                raise ValidationError({"discount_ends_at": ["Discount cannot end before it starts"]})

    @classmethod
    def add(
        cls,
        sku,
        name,
        price,
        stock_quantity=0,
        description=None,
        discount_percentage="0",
        discount_starts_at=None,
        discount_ends_at=None,
    ):
        timestamp = now()
        product = cls(
            sku=sku.strip().upper(),
            name=name,
            description=description,
            price=to_str(price),
            discount_percentage=str(to_decimal(discount_percentage)),
            discount_starts_at=discount_starts_at,
            discount_ends_at=discount_ends_at,
            stock_quantity=stock_quantity,
            created_at=timestamp,
            updated_at=timestamp,
        )
        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                sku=product.sku,
                name=product.name,
                price=product.price,
                stock_quantity=product.stock_quantity,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def effective_price(self, at=None) -> Decimal:
        return effective_price(
            self.price,
            self.discount_percentage,
            self.discount_starts_at,
            self.discount_ends_at,
            at or now(),
        )

    def update_pricing(self, price, discount_percentage="0", discount_starts_at=None, discount_ends_at=None):
        with atomic_change(self):
            self.price = to_str(price)
            self.discount_percentage = str(to_decimal(discount_percentage))
            self.discount_starts_at = discount_starts_at
            self.discount_ends_at = discount_ends_at
            self.updated_at = now()

        self.raise_(
            ProductPricingUpdated(
                product_id=str(self.id),
                price=self.price,
                discount_percentage=self.discount_percentage,
                discount_starts_at=self.discount_starts_at,
                discount_ends_at=self.discount_ends_at,
            )
        )

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def can_supply(self, quantity) -> bool:
        return not self.is_archived and quantity <= (self.stock_quantity or 0)

    def adjust_stock(self, delta, reason=None):
        previous = self.stock_quantity or 0
        if previous + delta < 0:
            raise ValidationError({"stock_quantity": [f"Cannot remove {-delta} units, only {previous} in stock"]})

        self.stock_quantity = previous + delta
        self.updated_at = now()
        self.raise_(
            StockAdjusted(
                product_id=str(self.id),
                previous_quantity=previous,
                new_quantity=self.stock_quantity,
                reason=reason,
            )
        )

    def withdraw_stock(self, quantity, order_id):
        """Take units off the shelf for an order. Fails if archived or short."""
        if not self.can_supply(quantity):
            raise ProductUnavailable({"items": [f"Product {self.sku} is not available in quantity {quantity}"]})

        self.stock_quantity -= quantity
        self.updated_at = now()
        self.raise_(
            StockWithdrawn(
                product_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                remaining=self.stock_quantity,
            )
        )

    def restock(self, quantity, order_id):
        self.stock_quantity = (self.stock_quantity or 0) + quantity
        self.updated_at = now()
        self.raise_(
            StockRestored(
                product_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                new_quantity=self.stock_quantity,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def archive(self):
        if self.is_archived:
            raise ValidationError({"is_archived": ["Product is already archived"]})
        self.is_archived = True
        self.updated_at = now()
        self.raise_(ProductArchived(product_id=str(self.id), sku=self.sku))

    def restore(self):
        if not self.is_archived:
            raise ValidationError({"is_archived": ["Product is not archived"]})
        self.is_archived = False
        self.updated_at = now()
        self.raise_(ProductRestored(product_id=str(self.id), sku=self.sku))
