"""Wishlist: a per-user set of products saved for later."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier
from protean.utils.globals import current_domain

from storefront.cart.events import WishlistItemAdded, WishlistItemRemoved
from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.errors import ProductUnavailable
from storefront.shared.clock import now


@storefront.entity(part_of="Wishlist")
class WishlistItem:
    product_id = Identifier(required=True)
    added_at = DateTime()


@storefront.aggregate
class Wishlist:
    user_id = Identifier(required=True, unique=True)
    items = HasMany(WishlistItem)

    def product_ids(self) -> list[str]:
        return [str(item.product_id) for item in self.items]

    def add(self, product_id):
        if str(product_id) in self.product_ids():
            raise ValidationError({"product_id": ["Product is already in the wishlist"]})
        self.add_items(WishlistItem(product_id=product_id, added_at=now()))
        self.raise_(
            WishlistItemAdded(wishlist_id=str(self.id), user_id=str(self.user_id), product_id=str(product_id))
        )

    def remove(self, product_id):
        item = next((i for i in self.items if str(i.product_id) == str(product_id)), None)
        if item is None:
            raise ValidationError({"product_id": ["Product is not in the wishlist"]})
        self.remove_items(item)
        self.raise_(
            WishlistItemRemoved(wishlist_id=str(self.id), user_id=str(self.user_id), product_id=str(product_id))
        )


@storefront.command(part_of="Wishlist")
class AddToWishlist:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Wishlist")
class RemoveFromWishlist:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=Wishlist)
class WishlistHandler:
    @handle(AddToWishlist)
    def add_to_wishlist(self, command):
        product = current_domain.repository_for(Product).get(command.product_id)
        if product.is_archived:
            raise ProductUnavailable({"product_id": ["Product is no longer sold"]})

        repo = current_domain.repository_for(Wishlist)
        wishlist = repo.for_user(command.user_id) or Wishlist(user_id=command.user_id)
        wishlist.add(command.product_id)
        repo.add(wishlist)

    @handle(RemoveFromWishlist)
    def remove_from_wishlist(self, command):
        repo = current_domain.repository_for(Wishlist)
        wishlist = repo.for_user(command.user_id)
        if wishlist is None:
            raise ValidationError({"product_id": ["Product is not in the wishlist"]})
        wishlist.remove(command.product_id)
        repo.add(wishlist)
