"""Domain events for loyalty accounts."""

from protean.fields import Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="LoyaltyAccount")
class LoyaltyAccountOpened:
    __version__ = 1

    account_id = Identifier(required=True)
    user_id = Identifier(required=True)
    balance = Integer(required=True)


@storefront.event(part_of="LoyaltyAccount")
class BonusesDebited:
    """Bonuses were spent on an order."""

    __version__ = 1

    account_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Integer(required=True)
    balance = Integer(required=True)


@storefront.event(part_of="LoyaltyAccount")
class BonusesCredited:
    """Cashback for a completed order."""

    __version__ = 1

    account_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Integer(required=True)
    balance = Integer(required=True)


@storefront.event(part_of="LoyaltyAccount")
class BonusesRestored:
    """Bonuses spent on a cancelled order came back."""

    __version__ = 1

    account_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Integer(required=True)
    balance = Integer(required=True)


@storefront.event(part_of="LoyaltyAccount")
class BonusesGranted:
    __version__ = 1

    account_id = Identifier(required=True)
    user_id = Identifier(required=True)
    amount = Integer(required=True)
    balance = Integer(required=True)
    note = String()
