"""Cart aggregate: one per user, a set of (product, quantity) lines.

The cart is the source of truth for what a user intends to buy, but an
order never references cart rows. Checkout copies what it needs and then
removes the consumed lines.
"""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer

from storefront.cart.events import (
    CartCheckedOut,
    CartCleared,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
)
from storefront.domain import storefront
from storefront.errors import ProductUnavailable
from storefront.shared.clock import now


@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@storefront.aggregate
class Cart:
    user_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def one_line_per_product(self):
        product_ids = [str(item.product_id) for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"items": ["A product can appear only once in a cart"]})

    @classmethod
    def open(cls, user_id):
        timestamp = now()
        return cls(user_id=user_id, created_at=timestamp, updated_at=timestamp)

    def line_for(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def quantities(self) -> dict[str, int]:
        return {str(item.product_id): item.quantity for item in self.items}

    def add_item(self, product_id, quantity, available):
        """Add units of a product, merging with an existing line.

        ``available`` is the product's current stock; the resulting line may
        not exceed it.
        """
        line = self.line_for(product_id)
        line_quantity = (line.quantity if line else 0) + quantity
        if line_quantity > available:
            raise ProductUnavailable({"quantity": [f"Only {available} units in stock"]})

        timestamp = now()
        if line:
            line.quantity = line_quantity
        else:
            self.add_items(CartItem(product_id=product_id, quantity=quantity, added_at=timestamp))
        self.updated_at = timestamp

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                product_id=str(product_id),
                quantity=quantity,
                line_quantity=line_quantity,
            )
        )

    def update_quantity(self, product_id, quantity, available):
        """Set a line's quantity. Zero removes the line."""
        line = self.line_for(product_id)
        if line is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})

        if quantity == 0:
            self.remove_item(product_id)
            return
        if quantity > available:
            raise ProductUnavailable({"quantity": [f"Only {available} units in stock"]})

        previous = line.quantity
        line.quantity = quantity
        self.updated_at = now()
        self.raise_(
            CartItemQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous,
                new_quantity=quantity,
            )
        )

    def remove_item(self, product_id):
        line = self.line_for(product_id)
        if line is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})

        self.remove_items(line)
        self.updated_at = now()
        self.raise_(CartItemRemoved(cart_id=str(self.id), product_id=str(product_id)))

    def clear(self):
        count = len(self.items)
        for line in list(self.items):
            self.remove_items(line)
        self.updated_at = now()
        self.raise_(CartCleared(cart_id=str(self.id), user_id=str(self.user_id), item_count=count))

    def check_out(self, product_ids, order_id) -> int:
        """Drop the lines an order consumed. Lines the order did not touch stay."""
        wanted = {str(pid) for pid in product_ids}
        consumed = [line for line in self.items if str(line.product_id) in wanted]
        for line in consumed:
            self.remove_items(line)
        if consumed:
            self.updated_at = now()
            self.raise_(
                CartCheckedOut(
                    cart_id=str(self.id),
                    order_id=str(order_id),
                    removed_count=len(consumed),
                )
            )
        return len(consumed)
