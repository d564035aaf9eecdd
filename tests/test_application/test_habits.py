"""
Tests for habit use cases: CRUD, daily log, undo
"""
from datetime import date

import pytest

from famboard.application.audit import Actor
from famboard.application.errors import NotFound
from famboard.application.habits import (
    CreateHabitUseCase, DeleteHabitUseCase, HabitValidationError, LogHabitUseCase,
    UndoHabitLogUseCase, UpdateHabitUseCase, list_habits,
)
from famboard.application.points import PointsLedger
from famboard.infrastructure.db.models import AuditLog, PointTransaction

DAY = date(2026, 3, 4)


@pytest.fixture
def reading(db_session):
    return CreateHabitUseCase(db_session).execute("Read 20 minutes", icon="book", points=2)


class TestHabitLog:
    def test_log_awards_points(self, db_session, reading, child):
        log = LogHabitUseCase(db_session).execute(reading.id, child.id, on_date=DAY)
        assert log.points_awarded == 2
        assert PointsLedger(db_session).get_balance(child.id) == 2

    def test_one_log_per_day(self, db_session, reading, child):
        LogHabitUseCase(db_session).execute(reading.id, child.id, on_date=DAY)
        with pytest.raises(HabitValidationError, match="Already completed today"):
            LogHabitUseCase(db_session).execute(reading.id, child.id, on_date=DAY)

    def test_members_log_independently(self, db_session, reading, child, second_child):
        LogHabitUseCase(db_session).execute(reading.id, child.id, on_date=DAY)
        LogHabitUseCase(db_session).execute(reading.id, second_child.id, on_date=DAY)
        habit = list_habits(db_session, DAY)[0]
        assert sorted(l["memberId"] for l in habit["logs"]) == sorted([child.id, second_child.id])

    def test_zero_point_habit_writes_no_ledger_row(self, db_session, child):
        habit = CreateHabitUseCase(db_session).execute("Make bed", points=0)
        LogHabitUseCase(db_session).execute(habit.id, child.id, on_date=DAY)
        assert db_session.query(PointTransaction).count() == 0


class TestUndoHabitLog:
    def test_undo_reverses_with_habit_undo_entry(self, db_session, reading, child):
        LogHabitUseCase(db_session).execute(reading.id, child.id, on_date=DAY)
        reversed_points = UndoHabitLogUseCase(db_session).execute(reading.id, child.id, on_date=DAY)

        assert reversed_points == 2
        assert PointsLedger(db_session).get_balance(child.id) == 0
        types = sorted(t.type for t in db_session.query(PointTransaction).all())
        assert types == ["HABIT_COMPLETION", "HABIT_UNDO"]

    def test_undo_is_audited(self, db_session, reading, child, parent):
        LogHabitUseCase(db_session).execute(reading.id, child.id, on_date=DAY)
        actor = Actor(member_id=parent.id, name=parent.name, role="PARENT")
        UndoHabitLogUseCase(db_session).execute(reading.id, child.id, on_date=DAY, actor=actor)

        entry = db_session.query(AuditLog).filter(AuditLog.action == "UNDO_HABIT").one()
        assert entry.entity_id == str(reading.id)
        assert entry.performed_by == str(parent.id)
        assert entry.old_value == {"memberId": child.id, "points": 2, "date": "2026-03-04"}

    def test_undo_missing_log(self, db_session, reading, child):
        with pytest.raises(NotFound, match="Habit log not found"):
            UndoHabitLogUseCase(db_session).execute(reading.id, child.id, on_date=DAY)


class TestHabitCrud:
    def test_update_and_deactivate(self, db_session, reading):
        UpdateHabitUseCase(db_session).execute(reading.id, {"points": 3, "is_active": False})
        assert reading.points == 3
        assert list_habits(db_session, DAY) == []

    def test_delete(self, db_session, reading):
        DeleteHabitUseCase(db_session).execute(reading.id)
        with pytest.raises(NotFound):
            UpdateHabitUseCase(db_session).execute(reading.id, {"points": 1})
