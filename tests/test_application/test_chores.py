"""
Tests for chore use cases: CRUD, daily completion, undo
"""
from datetime import date

import pytest

from famboard.application.chores import (
    ChoreValidationError, CompleteChoreUseCase, CreateChoreUseCase, DeleteChoreUseCase,
    UndoChoreCompletionUseCase, UpdateChoreUseCase, get_chore_detail, list_chores,
)
from famboard.application.errors import NotFound
from famboard.application.points import AdjustPointsUseCase, PointsLedger
from famboard.infrastructure.db.models import ChoreAssignment, PointTransaction

TODAY = date(2026, 3, 4)  # Wednesday


@pytest.fixture
def dishes(db_session, child):
    return CreateChoreUseCase(db_session).execute(
        "Dishes", points=5, recurrence="DAILY", assignee_ids=[child.id],
    )


class TestChoreCrud:
    def test_create_with_assignees(self, db_session, dishes, child):
        detail = get_chore_detail(db_session, dishes.id)
        assert detail["title"] == "Dishes"
        assert [a["id"] for a in detail["assignees"]] == [child.id]
        assert detail["recentCompletions"] == []

    def test_title_required(self, db_session):
        with pytest.raises(ChoreValidationError):
            CreateChoreUseCase(db_session).execute("   ")

    def test_update_replaces_assignees(self, db_session, dishes, child, second_child):
        UpdateChoreUseCase(db_session).execute(dishes.id, {"points": 8}, assignee_ids=[second_child.id])
        assert dishes.points == 8
        rows = db_session.query(ChoreAssignment).filter(ChoreAssignment.chore_id == dishes.id).all()
        assert [r.member_id for r in rows] == [second_child.id]

    def test_delete_keeps_ledger(self, db_session, dishes, child):
        CompleteChoreUseCase(db_session).execute(dishes.id, child.id, today=TODAY)
        DeleteChoreUseCase(db_session).execute(dishes.id)

        with pytest.raises(NotFound):
            get_chore_detail(db_session, dishes.id)
        assert PointsLedger(db_session).get_balance(child.id) == 5

    def test_list_filters_by_day(self, db_session, dishes):
        CreateChoreUseCase(db_session).execute("Trash", recurrence="WEEKLY", recur_days=["MON"])
        titles = [c["title"] for c in list_chores(db_session, today=TODAY)]
        assert titles == ["Dishes"]
        titles = [c["title"] for c in list_chores(db_session, include_all=True, today=TODAY)]
        assert sorted(titles) == ["Dishes", "Trash"]


class TestCompleteChore:
    def test_child_completion_awards_points(self, db_session, dishes, child):
        completion, points = CompleteChoreUseCase(db_session).execute(dishes.id, child.id, today=TODAY)

        assert points == 5
        assert completion.completed_date == TODAY
        tx = db_session.query(PointTransaction).one()
        assert tx.type == "CHORE_COMPLETION"
        assert tx.chore_completion_id == completion.id

    def test_parent_completion_awards_nothing(self, db_session, dishes, parent):
        _, points = CompleteChoreUseCase(db_session).execute(dishes.id, parent.id, today=TODAY)
        assert points == 0
        assert db_session.query(PointTransaction).count() == 0

    def test_second_completion_same_day_rejected(self, db_session, dishes, child, second_child):
        CompleteChoreUseCase(db_session).execute(dishes.id, child.id, today=TODAY)
        with pytest.raises(ChoreValidationError, match="Chore already completed today"):
            CompleteChoreUseCase(db_session).execute(dishes.id, second_child.id, today=TODAY)
        assert PointsLedger(db_session).get_balance(second_child.id) == 0

    def test_completion_shows_in_list(self, db_session, dishes, child):
        CompleteChoreUseCase(db_session).execute(dishes.id, child.id, today=TODAY)
        chore = list_chores(db_session, today=TODAY)[0]
        assert chore["isCompleted"] is True
        assert chore["completedBy"]["id"] == child.id


class TestUndoCompletion:
    def test_undo_appends_compensating_entry(self, db_session, dishes, child):
        CompleteChoreUseCase(db_session).execute(dishes.id, child.id, today=TODAY)

        reversed_points = UndoChoreCompletionUseCase(db_session).execute(dishes.id, today=TODAY)

        assert reversed_points == 5
        assert PointsLedger(db_session).get_balance(child.id) == 0
        types = sorted(t.type for t in db_session.query(PointTransaction).all())
        assert types == ["CHORE_COMPLETION", "CHORE_UNDO"]

    def test_undo_allows_completing_again(self, db_session, dishes, child):
        CompleteChoreUseCase(db_session).execute(dishes.id, child.id, today=TODAY)
        UndoChoreCompletionUseCase(db_session).execute(dishes.id, today=TODAY)
        _, points = CompleteChoreUseCase(db_session).execute(dishes.id, child.id, today=TODAY)
        assert points == 5

    def test_undo_refused_when_points_spent(self, db_session, dishes, child):
        CompleteChoreUseCase(db_session).execute(dishes.id, child.id, today=TODAY)
        AdjustPointsUseCase(db_session).execute(child.id, -4)

        with pytest.raises(ChoreValidationError) as exc:
            UndoChoreCompletionUseCase(db_session).execute(dishes.id, today=TODAY)
        assert exc.value.extra == {"balance": 1, "required": 5}

    def test_undo_without_completion(self, db_session, dishes):
        with pytest.raises(NotFound, match="No completion found for today"):
            UndoChoreCompletionUseCase(db_session).execute(dishes.id, today=TODAY)
