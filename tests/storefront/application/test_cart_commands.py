import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.cart.cart import Cart
from storefront.cart.comparison import AddToComparison, ComparisonList, RemoveFromComparison
from storefront.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity
from storefront.cart.wishlist import AddToWishlist, RemoveFromWishlist, Wishlist
from storefront.catalogue.management import ArchiveProduct
from storefront.errors import ProductUnavailable

USER = "user-1"


def _cart():
    return current_domain.repository_for(Cart).for_user(USER)


class TestCartCommands:
    def test_add_creates_one_cart_per_user(self, make_product):
        first = make_product()
        second = make_product()
        cart_id = current_domain.process(AddToCart(user_id=USER, product_id=first, quantity=2), asynchronous=False)
        again = current_domain.process(AddToCart(user_id=USER, product_id=second), asynchronous=False)
        assert cart_id == again
        assert _cart().quantities() == {first: 2, second: 1}

    def test_adding_same_product_merges_lines(self, make_product):
        product_id = make_product()
        current_domain.process(AddToCart(user_id=USER, product_id=product_id, quantity=2), asynchronous=False)
        current_domain.process(AddToCart(user_id=USER, product_id=product_id, quantity=3), asynchronous=False)
        assert len(_cart().items) == 1
        assert _cart().quantities() == {product_id: 5}

    def test_cannot_exceed_stock(self, make_product):
        product_id = make_product(stock_quantity=2)
        with pytest.raises(ProductUnavailable):
            current_domain.process(AddToCart(user_id=USER, product_id=product_id, quantity=3), asynchronous=False)

    def test_archived_product_is_rejected(self, make_product):
        product_id = make_product()
        current_domain.process(ArchiveProduct(product_id=product_id), asynchronous=False)
        with pytest.raises(ProductUnavailable):
            current_domain.process(AddToCart(user_id=USER, product_id=product_id), asynchronous=False)
        assert _cart() is None

    def test_unknown_product(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(AddToCart(user_id=USER, product_id="missing"), asynchronous=False)

    def test_update_quantity_and_remove_with_zero(self, make_product):
        product_id = make_product()
        current_domain.process(AddToCart(user_id=USER, product_id=product_id), asynchronous=False)

        current_domain.process(UpdateCartQuantity(user_id=USER, product_id=product_id, quantity=4), asynchronous=False)
        assert _cart().quantities() == {product_id: 4}

        current_domain.process(UpdateCartQuantity(user_id=USER, product_id=product_id, quantity=0), asynchronous=False)
        assert _cart().quantities() == {}

    def test_remove_absent_product(self, make_product):
        product_id = make_product()
        current_domain.process(AddToCart(user_id=USER, product_id=product_id), asynchronous=False)
        with pytest.raises(ValidationError):
            current_domain.process(RemoveFromCart(user_id=USER, product_id="other"), asynchronous=False)

    def test_remove_and_clear(self, make_product):
        first = make_product()
        second = make_product()
        for product_id in (first, second):
            current_domain.process(AddToCart(user_id=USER, product_id=product_id), asynchronous=False)

        current_domain.process(RemoveFromCart(user_id=USER, product_id=first), asynchronous=False)
        assert _cart().quantities() == {second: 1}

        current_domain.process(ClearCart(user_id=USER), asynchronous=False)
        assert _cart().items == []


class TestWishlistCommands:
    def test_add_and_remove(self, make_product):
        product_id = make_product()
        current_domain.process(AddToWishlist(user_id=USER, product_id=product_id), asynchronous=False)
        wishlist = current_domain.repository_for(Wishlist).for_user(USER)
        assert wishlist.product_ids() == [product_id]

        current_domain.process(RemoveFromWishlist(user_id=USER, product_id=product_id), asynchronous=False)
        assert current_domain.repository_for(Wishlist).for_user(USER).product_ids() == []

    def test_duplicate_is_rejected(self, make_product):
        product_id = make_product()
        current_domain.process(AddToWishlist(user_id=USER, product_id=product_id), asynchronous=False)
        with pytest.raises(ValidationError):
            current_domain.process(AddToWishlist(user_id=USER, product_id=product_id), asynchronous=False)


class TestComparisonCommands:
    def test_add_and_remove(self, make_product):
        first = make_product()
        second = make_product()
        for product_id in (first, second):
            current_domain.process(AddToComparison(user_id=USER, product_id=product_id), asynchronous=False)
        comparison = current_domain.repository_for(ComparisonList).for_user(USER)
        assert sorted(comparison.product_ids()) == sorted([first, second])

        current_domain.process(RemoveFromComparison(user_id=USER, product_id=first), asynchronous=False)
        assert current_domain.repository_for(ComparisonList).for_user(USER).product_ids() == [second]

    def test_archived_product_is_rejected(self, make_product):
        product_id = make_product()
        current_domain.process(ArchiveProduct(product_id=product_id), asynchronous=False)
        with pytest.raises(ProductUnavailable):
            current_domain.process(AddToComparison(user_id=USER, product_id=product_id), asynchronous=False)

    def test_remove_without_list(self):
        with pytest.raises(ValidationError):
            current_domain.process(RemoveFromComparison(user_id=USER, product_id="p"), asynchronous=False)
