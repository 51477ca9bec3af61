"""Product queries beyond plain get/add."""

from storefront.catalogue.product import Product
from storefront.domain import storefront


@storefront.repository(part_of=Product)
class ProductRepository:
    def find_by_sku(self, sku: str) -> Product | None:
        found = self._dao.query.filter(sku=sku.strip().upper()).all().items
        return found[0] if found else None

    def active(self) -> list[Product]:
        return self._dao.query.filter(is_archived=False).all().items

    def listing(self, include_archived=False) -> list[Product]:
        if include_archived:
            return self._dao.query.all().items
        return self.active()

    def find_many(self, product_ids) -> dict[str, Product]:
        """Map each id that exists to its product. Unknown ids are simply absent."""
        wanted = {str(pid) for pid in product_ids}
        if not wanted:
            return {}
        found = self._dao.query.filter(id__in=list(wanted)).all().items
        return {str(product.id): product for product in found}
