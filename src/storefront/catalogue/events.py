"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductAdded:
    __version__ = 1

    product_id = Identifier(required=True)
    sku = String(required=True)
    name = String(required=True)
    price = String(required=True)
    stock_quantity = Integer(required=True)


@storefront.event(part_of="Product")
class ProductPricingUpdated:
    """Price or discount window changed. Existing orders keep their snapshot."""

    __version__ = 1

    product_id = Identifier(required=True)
    price = String(required=True)
    discount_percentage = String(required=True)
    discount_starts_at = DateTime()
    discount_ends_at = DateTime()


@storefront.event(part_of="Product")
class StockAdjusted:
    __version__ = 1

    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    reason = String()


@storefront.event(part_of="Product")
class StockWithdrawn:
    """Units left the shelf for an order."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@storefront.event(part_of="Product")
class StockRestored:
    """Units came back from a cancelled order."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="Product")
class ProductArchived:
    __version__ = 1

    product_id = Identifier(required=True)
    sku = String(required=True)


@storefront.event(part_of="Product")
class ProductRestored:
    __version__ = 1

    product_id = Identifier(required=True)
    sku = String(required=True)
