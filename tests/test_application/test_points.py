"""
Tests for the points ledger: awards, adjustments, balances
"""
import pytest

from famboard.application.audit import Actor
from famboard.application.errors import NotFound, PermissionDenied
from famboard.application.points import (
    AdjustPointsUseCase, AwardPointsUseCase, PointsLedger, PointsValidationError, list_child_balances,
)
from famboard.infrastructure.db.models import AuditLog, PointTransaction


class TestAwardPoints:
    def test_award_credits_child(self, db_session, parent, child):
        """Bonus is appended as a BONUS row and returned with the new balance"""
        tx, balance = AwardPointsUseCase(db_session).execute(child.id, 10, "Helped out", awarded_by_id=parent.id)

        assert tx.type == "BONUS"
        assert tx.amount == 10
        assert tx.created_by_id == parent.id
        assert balance == 10
        assert PointsLedger(db_session).get_balance(child.id) == 10

    def test_award_writes_audit_entry(self, db_session, parent, child):
        actor = Actor(member_id=parent.id, name=parent.name, role="PARENT")
        AwardPointsUseCase(db_session).execute(child.id, 5, awarded_by_id=parent.id, actor=actor)

        entry = db_session.query(AuditLog).one()
        assert entry.action == "AWARD_POINTS"
        assert entry.entity_type == "POINTS"
        assert entry.performed_by == str(parent.id)
        assert entry.new_value["amount"] == 5

    def test_only_children_receive_points(self, db_session, parent):
        with pytest.raises(PermissionDenied, match="Only children can receive points"):
            AwardPointsUseCase(db_session).execute(parent.id, 10)

    def test_only_parents_award(self, db_session, child, second_child):
        with pytest.raises(PermissionDenied, match="Only parents can award points"):
            AwardPointsUseCase(db_session).execute(child.id, 10, awarded_by_id=second_child.id)

    def test_amount_must_be_positive(self, db_session, child):
        with pytest.raises(PointsValidationError):
            AwardPointsUseCase(db_session).execute(child.id, 0)

    def test_unknown_member(self, db_session):
        with pytest.raises(NotFound, match="Family member not found"):
            AwardPointsUseCase(db_session).execute(999, 10)


class TestAdjustPoints:
    def test_positive_adjustment_is_bonus(self, db_session, child):
        tx, balance = AdjustPointsUseCase(db_session).execute(child.id, 7, "Kiosk")
        assert tx.type == "BONUS"
        assert balance == 7

    def test_negative_adjustment_is_deduction(self, db_session, child):
        AdjustPointsUseCase(db_session).execute(child.id, 10)
        tx, balance = AdjustPointsUseCase(db_session).execute(child.id, -4, "Candy")
        assert tx.type == "DEDUCTION"
        assert tx.amount == -4
        assert balance == 6

    def test_deduction_cannot_go_negative(self, db_session, child):
        AdjustPointsUseCase(db_session).execute(child.id, 3)
        with pytest.raises(PointsValidationError) as exc:
            AdjustPointsUseCase(db_session).execute(child.id, -5)
        assert exc.value.status_code == 400
        assert exc.value.to_dict() == {"error": "Insufficient points", "currentBalance": 3}
        assert db_session.query(PointTransaction).count() == 1

    def test_zero_rejected(self, db_session, child):
        with pytest.raises(PointsValidationError, match="non-zero"):
            AdjustPointsUseCase(db_session).execute(child.id, 0)


class TestLedgerQueries:
    def test_summary_and_lifetime_totals(self, db_session, child):
        AdjustPointsUseCase(db_session).execute(child.id, 10)
        AdjustPointsUseCase(db_session).execute(child.id, 5)
        AdjustPointsUseCase(db_session).execute(child.id, -8)

        summary = PointsLedger(db_session).summary(child)
        assert summary["balance"] == 7
        assert summary["lifetimeEarned"] == 15
        assert summary["lifetimeSpent"] == 8

    def test_list_transactions_paging_and_filter(self, db_session, child):
        for amount in (1, 2, 3, -1):
            AdjustPointsUseCase(db_session).execute(child.id, amount)

        ledger = PointsLedger(db_session)
        rows, total = ledger.list_transactions(child.id, limit=2)
        assert total == 4
        assert len(rows) == 2

        rows, total = ledger.list_transactions(child.id, tx_type="DEDUCTION")
        assert total == 1
        assert rows[0].amount == -1

    def test_child_balances_exclude_parents(self, db_session, parent, child, second_child):
        AdjustPointsUseCase(db_session).execute(child.id, 4)
        balances = list_child_balances(db_session)
        assert [b["memberName"] for b in balances] == ["Kid", "Sib"]
        assert balances[0]["balance"] == 4
        assert balances[1]["balance"] == 0

    def test_unknown_transaction_type_rejected(self, db_session, child):
        with pytest.raises(PointsValidationError, match="Unknown transaction type"):
            PointsLedger(db_session).record_transaction(child.id, 5, "GIFT")
