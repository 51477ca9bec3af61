"""Cart line management: commands and handler.

Adds and quantity changes are checked against the live product: archived
products are refused and a line may never exceed current stock.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.errors import ProductUnavailable


@storefront.command(part_of="Cart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)


@storefront.command(part_of="Cart")
class UpdateCartQuantity:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=0)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


def _sellable(product_id) -> Product:
    product = current_domain.repository_for(Product).get(product_id)
    if product.is_archived:
        raise ProductUnavailable({"product_id": ["Product is no longer sold"]})
    return product


@storefront.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = _sellable(command.product_id)

        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id) or Cart.open(command.user_id)
        cart.add_item(command.product_id, command.quantity or 1, available=product.stock_quantity or 0)
        repo.add(cart)
        return str(cart.id)

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)
        if cart is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})

        available = 0
        if command.quantity > 0:
            available = _sellable(command.product_id).stock_quantity or 0
        cart.update_quantity(command.product_id, command.quantity, available=available)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)
        if cart is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})
        cart.remove_item(command.product_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)
        if cart is None or not cart.items:
            return
        cart.clear()
        repo.add(cart)
