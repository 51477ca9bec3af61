"""Promocode lookups."""

from storefront.domain import storefront
from storefront.promotions.promocode import Promocode, PromocodeUsage, normalize_code


@storefront.repository(part_of=Promocode)
class PromocodeRepository:
    def find_by_code(self, code: str) -> Promocode | None:
        found = self._dao.query.filter(code=normalize_code(code)).all().items
        return found[0] if found else None

    def resolve(self, id_or_code: str) -> Promocode | None:
        """Find a promocode by its id, falling back to its code."""
        if not id_or_code:
            return None
        found = self._dao.query.filter(id=str(id_or_code)).all().items
        if found:
            return found[0]
        return self.find_by_code(id_or_code)


@storefront.repository(part_of=PromocodeUsage)
class PromocodeUsageRepository:
    def for_user(self, promocode_id, user_id) -> list[PromocodeUsage]:
        return self._dao.query.filter(promocode_id=str(promocode_id), user_id=str(user_id)).all().items

    def for_order(self, order_id) -> list[PromocodeUsage]:
        return self._dao.query.filter(order_id=str(order_id)).all().items
