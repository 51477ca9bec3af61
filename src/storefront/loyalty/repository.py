"""Loyalty account lookups."""

from storefront.config import get_settings
from storefront.domain import storefront
from storefront.loyalty.account import LoyaltyAccount


@storefront.repository(part_of=LoyaltyAccount)
class LoyaltyAccountRepository:
    def for_user(self, user_id) -> LoyaltyAccount | None:
        found = self._dao.query.filter(user_id=str(user_id)).all().items
        return found[0] if found else None

    def for_user_or_open(self, user_id) -> LoyaltyAccount:
        """Existing account, or a fresh unsaved one holding the welcome bonus."""
        return self.for_user(user_id) or LoyaltyAccount.open(user_id, get_settings().welcome_bonus)
