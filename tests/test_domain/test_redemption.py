"""Tests for the redemption state machine and points rules"""
import pytest

from famboard.domain.points import (
    TX_BONUS, TX_DEDUCTION, InsufficientPointsError, adjustment_type, ensure_debit_allowed,
    lifetime_earned, lifetime_spent,
)
from famboard.domain.redemption import Redemption, RedemptionStateError


class TestDecide:
    def test_pending_can_be_approved_or_denied(self):
        assert Redemption.decide("PENDING", "APPROVED") == "APPROVED"
        assert Redemption.decide("PENDING", "DENIED") == "DENIED"

    def test_terminal_rows_are_final(self):
        with pytest.raises(RedemptionStateError, match="already been processed"):
            Redemption.decide("APPROVED", "DENIED")
        with pytest.raises(RedemptionStateError):
            Redemption.decide("DENIED", "APPROVED")

    def test_unknown_decision(self):
        with pytest.raises(RedemptionStateError, match="APPROVED or DENIED"):
            Redemption.decide("PENDING", "PENDING")


class TestPointsRequired:
    def test_regular_reward_ignores_custom_amount(self):
        assert Redemption.points_required(20, False, 500) == 20

    def test_cash_reward_uses_custom_amount(self):
        assert Redemption.points_required(100, True, 250) == 250
        assert Redemption.points_required(100, True, None) == 100


class TestPointsRules:
    def test_debit_within_balance(self):
        ensure_debit_allowed(15, 15)

    def test_debit_beyond_balance(self):
        with pytest.raises(InsufficientPointsError) as exc:
            ensure_debit_allowed(15, 20)
        assert exc.value.balance == 15
        assert exc.value.required == 20

    def test_adjustment_type(self):
        assert adjustment_type(5) == TX_BONUS
        assert adjustment_type(-5) == TX_DEDUCTION
        with pytest.raises(ValueError):
            adjustment_type(0)

    def test_lifetime_totals(self):
        amounts = [10, 5, -8, -2]
        assert lifetime_earned(amounts) == 15
        assert lifetime_spent(amounts) == 10
