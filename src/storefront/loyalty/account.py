"""LoyaltyAccount aggregate: a user's bonus balance and its ledger.

The balance never goes negative. Every order-related entry is keyed by
(order_id, kind) and applied at most once, so redelivered commands cannot
double-debit or double-credit.
"""

from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from storefront.domain import storefront
from storefront.errors import InsufficientBonusBalance
from storefront.loyalty.events import (
    BonusesCredited,
    BonusesDebited,
    BonusesGranted,
    BonusesRestored,
    LoyaltyAccountOpened,
)
from storefront.shared.clock import now


class EntryKind(Enum):
    DEBIT = "debit"
    CREDIT = "credit"
    REFUND = "refund"
    GRANT = "grant"


@storefront.entity(part_of="LoyaltyAccount")
class BonusEntry:
    order_id = Identifier()
    kind = String(required=True, choices=EntryKind)
    amount = Integer(required=True, min_value=1)
    note = String(max_length=255)
    recorded_at = DateTime()


@storefront.aggregate
class LoyaltyAccount:
    user_id = Identifier(required=True, unique=True)
    balance = Integer(default=0)
    entries = HasMany(BonusEntry)
    opened_at = DateTime()

    @invariant.post
    def balance_cannot_be_negative(self):
        if (self.balance or 0) < 0:
            raise ValidationError({"balance": ["Bonus balance cannot be negative"]})

    @classmethod
    def open(cls, user_id, welcome_bonus=0):
        account = cls(user_id=user_id, balance=welcome_bonus, opened_at=now())
        if welcome_bonus > 0:
            account.add_entries(
                BonusEntry(kind=EntryKind.GRANT.value, amount=welcome_bonus, note="Welcome bonus", recorded_at=now())
            )
        account.raise_(LoyaltyAccountOpened(account_id=str(account.id), user_id=str(user_id), balance=account.balance))
        return account

    def entry_for(self, order_id, kind: EntryKind):
        return next(
            (e for e in self.entries if str(e.order_id) == str(order_id) and e.kind == kind.value),
            None,
        )

    def _record(self, kind: EntryKind, amount, order_id=None, note=None):
        self.add_entries(BonusEntry(order_id=order_id, kind=kind.value, amount=amount, note=note, recorded_at=now()))

    def debit(self, amount, order_id):
        """Spend bonuses on an order. A second debit for the same order is ignored."""
        if amount <= 0 or self.entry_for(order_id, EntryKind.DEBIT):
            return
        if amount > (self.balance or 0):
            raise InsufficientBonusBalance({"bonuses_used": [f"Insufficient bonus balance: {self.balance} available"]})

        self.balance -= amount
        self._record(EntryKind.DEBIT, amount, order_id=order_id)
        self.raise_(
            BonusesDebited(
                account_id=str(self.id),
                user_id=str(self.user_id),
                order_id=str(order_id),
                amount=amount,
                balance=self.balance,
            )
        )

    def credit(self, amount, order_id) -> bool:
        """Credit cashback for an order once. Returns False if it was already credited."""
        if amount <= 0 or self.entry_for(order_id, EntryKind.CREDIT):
            return False

        self.balance = (self.balance or 0) + amount
        self._record(EntryKind.CREDIT, amount, order_id=order_id)
        self.raise_(
            BonusesCredited(
                account_id=str(self.id),
                user_id=str(self.user_id),
                order_id=str(order_id),
                amount=amount,
                balance=self.balance,
            )
        )
        return True

    def restore(self, order_id) -> int:
        """Give back what an order debited. Returns the amount restored (0 if nothing to do)."""
        debit = self.entry_for(order_id, EntryKind.DEBIT)
        if debit is None or self.entry_for(order_id, EntryKind.REFUND):
            return 0

        self.balance = (self.balance or 0) + debit.amount
        self._record(EntryKind.REFUND, debit.amount, order_id=order_id)
        self.raise_(
            BonusesRestored(
                account_id=str(self.id),
                user_id=str(self.user_id),
                order_id=str(order_id),
                amount=debit.amount,
                balance=self.balance,
            )
        )
        return debit.amount

    def grant(self, amount, note=None):
        if amount <= 0:
            raise ValidationError({"amount": ["Granted bonuses must be positive"]})

        self.balance = (self.balance or 0) + amount
        self._record(EntryKind.GRANT, amount, note=note)
        self.raise_(
            BonusesGranted(
                account_id=str(self.id),
                user_id=str(self.user_id),
                amount=amount,
                balance=self.balance,
                note=note,
            )
        )
