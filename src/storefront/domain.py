"""Storefront bounded context: catalog, carts, promocodes, loyalty bonuses and orders.

A single domain keeps the checkout writes (bonus debit, promocode usage,
stock, order snapshot and cart clearance) inside one unit of work.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
