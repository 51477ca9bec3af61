"""Promocode administration: create, deactivate and reactivate codes."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.promotions.promocode import Promocode, PromocodeType
from storefront.shared.clock import as_utc, now

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Promocode")
class CreatePromocode:
    code = String(required=True, max_length=20)
    discount_percentage = String(required=True, max_length=8)
    promocode_type = String(choices=PromocodeType, default=PromocodeType.SINGLE_USE.value)
    min_order_amount = String(max_length=32, default="0")
    max_discount_amount = String(max_length=32)
    expires_at = DateTime()
    created_by = Identifier()


@storefront.command(part_of="Promocode")
class DeactivatePromocode:
    promocode_id = Identifier(required=True)


@storefront.command(part_of="Promocode")
class ActivatePromocode:
    promocode_id = Identifier(required=True)


@storefront.command_handler(part_of=Promocode)
class ManagePromocodeHandler:
    @handle(CreatePromocode)
    def create_promocode(self, command):
        repo = current_domain.repository_for(Promocode)
        if repo.find_by_code(command.code):
            raise ValidationError({"code": ["A promocode with this code already exists"]})
        if command.expires_at is not None and as_utc(command.expires_at) <= now():
            raise ValidationError({"expires_at": ["Expiry date must be in the future"]})

        promocode = Promocode.create(
            code=command.code,
            discount_percentage=command.discount_percentage,
            promocode_type=command.promocode_type or PromocodeType.SINGLE_USE.value,
            min_order_amount=command.min_order_amount,
            max_discount_amount=command.max_discount_amount,
            expires_at=command.expires_at,
            created_by=command.created_by,
        )
        repo.add(promocode)
        logger.info("Promocode created", promocode_id=str(promocode.id), code=promocode.code)
        return str(promocode.id)

    @handle(DeactivatePromocode)
    def deactivate_promocode(self, command):
        repo = current_domain.repository_for(Promocode)
        promocode = repo.get(command.promocode_id)
        promocode.deactivate()
        repo.add(promocode)

    @handle(ActivatePromocode)
    def activate_promocode(self, command):
        repo = current_domain.repository_for(Promocode)
        promocode = repo.get(command.promocode_id)
        promocode.activate()
        repo.add(promocode)
