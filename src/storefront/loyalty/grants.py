"""Manual bonus grants by staff."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.loyalty.account import LoyaltyAccount

logger = structlog.get_logger(__name__)


@storefront.command(part_of="LoyaltyAccount")
class GrantBonuses:
    user_id = Identifier(required=True)
    amount = Integer(required=True, min_value=1)
    note = String(max_length=255)


@storefront.command_handler(part_of=LoyaltyAccount)
class GrantBonusesHandler:
    @handle(GrantBonuses)
    def grant_bonuses(self, command):
        repo = current_domain.repository_for(LoyaltyAccount)
        account = repo.for_user_or_open(command.user_id)
        account.grant(command.amount, note=command.note)
        repo.add(account)
        logger.info("Bonuses granted", user_id=str(command.user_id), amount=command.amount, balance=account.balance)
        return account.balance
