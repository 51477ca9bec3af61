"""Catalog management: add products, reprice, adjust stock, archive and restore."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Product")
class AddProduct:
    sku = String(required=True, max_length=64)
    name = String(required=True, max_length=255)
    price = String(required=True, max_length=32)
    description = Text()
    stock_quantity = Integer(default=0, min_value=0)
    discount_percentage = String(max_length=8, default="0")
    discount_starts_at = DateTime()
    discount_ends_at = DateTime()


@storefront.command(part_of="Product")
class UpdateProductPricing:
    product_id = Identifier(required=True)
    price = String(required=True, max_length=32)
    discount_percentage = String(max_length=8, default="0")
    discount_starts_at = DateTime()
    discount_ends_at = DateTime()


@storefront.command(part_of="Product")
class AdjustStock:
    product_id = Identifier(required=True)
    delta = Integer(required=True)
    reason = String(max_length=255)


@storefront.command(part_of="Product")
class ArchiveProduct:
    product_id = Identifier(required=True)


@storefront.command(part_of="Product")
class RestoreProduct:
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        repo = current_domain.repository_for(Product)
        if repo.find_by_sku(command.sku):
            raise ValidationError({"sku": [f"A product with SKU {command.sku.upper()} already exists"]})

        product = Product.add(
            sku=command.sku,
            name=command.name,
            price=command.price,
            stock_quantity=command.stock_quantity,
            description=command.description,
            discount_percentage=command.discount_percentage or "0",
            discount_starts_at=command.discount_starts_at,
            discount_ends_at=command.discount_ends_at,
        )
        repo.add(product)
        logger.info("Product added", product_id=str(product.id), sku=product.sku)
        return str(product.id)

    @handle(UpdateProductPricing)
    def update_pricing(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.update_pricing(
            price=command.price,
            discount_percentage=command.discount_percentage or "0",
            discount_starts_at=command.discount_starts_at,
            discount_ends_at=command.discount_ends_at,
        )
        repo.add(product)

    @handle(AdjustStock)
    def adjust_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.adjust_stock(command.delta, reason=command.reason)
        repo.add(product)
        return product.stock_quantity

    @handle(ArchiveProduct)
    def archive_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.archive()
        repo.add(product)
        logger.info("Product archived", product_id=str(product.id), sku=product.sku)

    @handle(RestoreProduct)
    def restore_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.restore()
        repo.add(product)
