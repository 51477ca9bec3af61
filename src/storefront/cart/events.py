"""Domain events for carts, wishlists and comparison lists."""

from protean.fields import Identifier, Integer

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartItemAdded:
    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartItemQuantityUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.event(part_of="Cart")
class CartCleared:
    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
    item_count = Integer(required=True)


@storefront.event(part_of="Cart")
class CartCheckedOut:
    """Lines consumed by an order were removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)
    removed_count = Integer(required=True)


@storefront.event(part_of="Wishlist")
class WishlistItemAdded:
    __version__ = 1

    wishlist_id = Identifier(required=True)
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.event(part_of="Wishlist")
class WishlistItemRemoved:
    __version__ = 1

    wishlist_id = Identifier(required=True)
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.event(part_of="ComparisonList")
class ComparisonItemAdded:
    __version__ = 1

    comparison_id = Identifier(required=True)
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.event(part_of="ComparisonList")
class ComparisonItemRemoved:
    __version__ = 1

    comparison_id = Identifier(required=True)
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
