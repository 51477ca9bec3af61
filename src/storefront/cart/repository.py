"""Per-user lookups for carts, wishlists and comparison lists."""

from storefront.cart.cart import Cart
from storefront.cart.comparison import ComparisonList
from storefront.cart.wishlist import Wishlist
from storefront.domain import storefront


@storefront.repository(part_of=Cart)
class CartRepository:
    def for_user(self, user_id) -> Cart | None:
        found = self._dao.query.filter(user_id=str(user_id)).all().items
        return found[0] if found else None


@storefront.repository(part_of=Wishlist)
class WishlistRepository:
    def for_user(self, user_id) -> Wishlist | None:
        found = self._dao.query.filter(user_id=str(user_id)).all().items
        return found[0] if found else None


@storefront.repository(part_of=ComparisonList)
class ComparisonListRepository:
    def for_user(self, user_id) -> ComparisonList | None:
        found = self._dao.query.filter(user_id=str(user_id)).all().items
        return found[0] if found else None
