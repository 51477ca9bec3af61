from decimal import Decimal

import pytest
from protean.exceptions import ValidationError

from storefront.errors import InsufficientBonusBalance
from storefront.loyalty.account import EntryKind, LoyaltyAccount
from storefront.loyalty.events import BonusesCredited, BonusesDebited, BonusesRestored
from storefront.loyalty.policy import bonuses_earned, check_bonus_spend, spendable


class TestBonusSpendPolicy:
    def test_zero_is_always_allowed(self):
        assert check_bonus_spend(0, 0, Decimal("0")) == 0

    def test_within_balance_and_amount(self):
        assert check_bonus_spend(200, 300, Decimal("900.00")) == 200

    def test_more_than_balance(self):
        with pytest.raises(InsufficientBonusBalance):
            check_bonus_spend(5000, 100, Decimal("10000.00"))

    def test_more_than_payable_amount(self):
        with pytest.raises(InsufficientBonusBalance):
            check_bonus_spend(150, 500, Decimal("100.00"))

    def test_share_cap(self):
        assert spendable(1000, Decimal("1000.00"), max_share_percent=20) == 200
        with pytest.raises(InsufficientBonusBalance):
            check_bonus_spend(201, 1000, Decimal("1000.00"), max_share_percent=20)

    def test_negative_request(self):
        with pytest.raises(ValidationError):
            check_bonus_spend(-1, 100, Decimal("100"))


class TestBonusesEarned:
    def test_percentage_rounded_down(self):
        assert bonuses_earned(Decimal("799.99"), 5) == 39

    def test_zero_percent(self):
        assert bonuses_earned(Decimal("1000"), 0) == 0


class TestLoyaltyAccount:
    def test_open_with_welcome_bonus(self):
        account = LoyaltyAccount.open("user-1", welcome_bonus=100)
        assert account.balance == 100
        assert [e.kind for e in account.entries] == [EntryKind.GRANT.value]

    def test_debit_reduces_balance(self):
        account = LoyaltyAccount.open("user-1", welcome_bonus=100)
        account.debit(60, order_id="order-1")
        assert account.balance == 40
        assert isinstance(account._events[-1], BonusesDebited)

    def test_debit_beyond_balance_fails_without_change(self):
        account = LoyaltyAccount.open("user-1", welcome_bonus=100)
        with pytest.raises(InsufficientBonusBalance):
            account.debit(101, order_id="order-1")
        assert account.balance == 100

    def test_debit_is_applied_once_per_order(self):
        account = LoyaltyAccount.open("user-1", welcome_bonus=100)
        account.debit(30, order_id="order-1")
        account.debit(30, order_id="order-1")
        assert account.balance == 70

    def test_credit_is_applied_once_per_order(self):
        account = LoyaltyAccount.open("user-1", welcome_bonus=0)
        assert account.credit(25, order_id="order-1") is True
        assert account.credit(25, order_id="order-1") is False
        assert account.balance == 25
        assert isinstance(account._events[-1], BonusesCredited)

    def test_restore_returns_debited_amount_once(self):
        account = LoyaltyAccount.open("user-1", welcome_bonus=100)
        account.debit(80, order_id="order-1")
        assert account.restore("order-1") == 80
        assert account.restore("order-1") == 0
        assert account.balance == 100
        assert isinstance(account._events[-1], BonusesRestored)

    def test_restore_without_debit_is_noop(self):
        account = LoyaltyAccount.open("user-1", welcome_bonus=100)
        assert account.restore("order-1") == 0
        assert account.balance == 100

    def test_balance_never_negative_across_sequences(self):
        account = LoyaltyAccount.open("user-1", welcome_bonus=100)
        operations = [
            ("debit", 50, "o1"),
            ("debit", 60, "o2"),
            ("credit", 10, "o1"),
            ("debit", 60, "o3"),
            ("restore", None, "o1"),
            ("debit", 200, "o4"),
        ]
        for op, amount, order_id in operations:
            try:
                if op == "debit":
                    account.debit(amount, order_id)
                elif op == "credit":
                    account.credit(amount, order_id)
                else:
                    account.restore(order_id)
            except InsufficientBonusBalance:
                pass
            assert account.balance >= 0
        # 100 - 50 + 10 - 60 + 50
        assert account.balance == 50

    def test_grant_must_be_positive(self):
        account = LoyaltyAccount.open("user-1", welcome_bonus=100)
        with pytest.raises(ValidationError):
            account.grant(0)
        account.grant(25, note="Apology")
        assert account.balance == 125
