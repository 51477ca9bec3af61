"""Comparison list: products a user lines up side by side."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier
from protean.utils.globals import current_domain

from storefront.cart.events import ComparisonItemAdded, ComparisonItemRemoved
from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.errors import ProductUnavailable
from storefront.shared.clock import now


@storefront.entity(part_of="ComparisonList")
class ComparisonItem:
    product_id = Identifier(required=True)
    added_at = DateTime()


@storefront.aggregate
class ComparisonList:
    user_id = Identifier(required=True, unique=True)
    items = HasMany(ComparisonItem)

    def product_ids(self) -> list[str]:
        return [str(item.product_id) for item in self.items]

    def add(self, product_id):
        if str(product_id) in self.product_ids():
            raise ValidationError({"product_id": ["Product is already being compared"]})
        self.add_items(ComparisonItem(product_id=product_id, added_at=now()))
        self.raise_(
            ComparisonItemAdded(comparison_id=str(self.id), user_id=str(self.user_id), product_id=str(product_id))
        )

    def remove(self, product_id):
        item = next((i for i in self.items if str(i.product_id) == str(product_id)), None)
        if item is None:
            raise ValidationError({"product_id": ["Product is not being compared"]})
        self.remove_items(item)
        self.raise_(
            ComparisonItemRemoved(comparison_id=str(self.id), user_id=str(self.user_id), product_id=str(product_id))
        )


@storefront.command(part_of="ComparisonList")
class AddToComparison:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="ComparisonList")
class RemoveFromComparison:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=ComparisonList)
class ComparisonHandler:
    @handle(AddToComparison)
    def add_to_comparison(self, command):
        product = current_domain.repository_for(Product).get(command.product_id)
        if product.is_archived:
            raise ProductUnavailable({"product_id": ["Product is no longer sold"]})

        repo = current_domain.repository_for(ComparisonList)
        comparison = repo.for_user(command.user_id) or ComparisonList(user_id=command.user_id)
        comparison.add(command.product_id)
        repo.add(comparison)

    @handle(RemoveFromComparison)
    def remove_from_comparison(self, command):
        repo = current_domain.repository_for(ComparisonList)
        comparison = repo.for_user(command.user_id)
        if comparison is None:
            raise ValidationError({"product_id": ["Product is not being compared"]})
        comparison.remove(command.product_id)
        repo.add(comparison)
