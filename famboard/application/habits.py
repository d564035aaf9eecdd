"""Habit use cases: CRUD, daily log and undo"""
from datetime import date
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from famboard.application.audit import Actor, record_audit
from famboard.application.errors import NotFound, ValidationFailed
from famboard.application.locks import member_lock
from famboard.application.points import PointsLedger, get_member_or_404
from famboard.domain.audit import ACTION_HABIT_POINTS_EARNED, ACTION_UNDO_HABIT, ENTITY_HABIT
from famboard.domain.points import (
    TX_HABIT_COMPLETION, TX_HABIT_UNDO, InsufficientPointsError, ensure_debit_allowed,
)
from famboard.infrastructure.db.models import Habit, HabitLog
from famboard.utils.clock import local_today, utc_now

HABIT_FREQUENCIES = ["DAILY", "WEEKLY"]
HABIT_FIELDS = ["name", "icon", "points", "frequency", "is_active"]

ALREADY_LOGGED = "Already completed today"


class HabitValidationError(ValidationFailed):
    pass


def get_habit_or_404(db: Session, habit_id: int) -> Habit:
    habit = db.query(Habit).filter(Habit.id == habit_id).first()
    if habit is None:
        raise NotFound("Habit not found")
    return habit


def serialize_habit(habit: Habit, logs: list[HabitLog] | None = None) -> dict:
    data = {
        "id": habit.id,
        "name": habit.name,
        "icon": habit.icon,
        "points": habit.points,
        "frequency": habit.frequency,
        "isActive": habit.is_active,
    }
    if logs is not None:
        data["logs"] = [serialize_habit_log(log) for log in logs]
    return data


def serialize_habit_log(log: HabitLog) -> dict:
    return {
        "id": log.id,
        "habitId": log.habit_id,
        "memberId": log.member_id,
        "date": log.log_date.isoformat(),
        "pointsAwarded": log.points_awarded,
    }


def list_habits(db: Session, on_date: date | None = None) -> list[dict]:
    """Active habits with the logs recorded on `on_date` (default today)"""
    on_date = on_date or local_today()
    habits = (
        db.query(Habit)
        .filter(Habit.is_active == True)  # noqa: E712
        .order_by(Habit.name.asc())
        .all()
    )
    logs_by_habit: dict[int, list[HabitLog]] = {}
    if habits:
        for log in db.query(HabitLog).filter(
            HabitLog.habit_id.in_([h.id for h in habits]),
            HabitLog.log_date == on_date,
        ).all():
            logs_by_habit.setdefault(log.habit_id, []).append(log)
    return [serialize_habit(h, logs_by_habit.get(h.id, [])) for h in habits]


def _validate(fields: dict[str, Any]) -> None:
    if "name" in fields:
        fields["name"] = (fields["name"] or "").strip()
        if not fields["name"]:
            raise HabitValidationError("Name is required")
    if fields.get("points") is not None and fields["points"] < 0:
        raise HabitValidationError("points cannot be negative")
    if fields.get("frequency") is not None and fields["frequency"] not in HABIT_FREQUENCIES:
        raise HabitValidationError(f"frequency must be one of: {', '.join(HABIT_FREQUENCIES)}")


class CreateHabitUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, name: str, icon: str | None = None, points: int = 1, frequency: str = "DAILY") -> Habit:
        fields = {"name": name, "icon": icon, "points": points, "frequency": frequency or "DAILY"}
        _validate(fields)
        habit = Habit(is_active=True, **fields)
        self.db.add(habit)
        self.db.commit()
        return habit


class UpdateHabitUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, habit_id: int, changes: dict[str, Any]) -> Habit:
        habit = get_habit_or_404(self.db, habit_id)
        unknown = set(changes) - set(HABIT_FIELDS)
        if unknown:
            raise HabitValidationError(f"Unknown habit fields: {', '.join(sorted(unknown))}")
        _validate(changes)
        for key, value in changes.items():
            setattr(habit, key, value)
        self.db.commit()
        return habit


class DeleteHabitUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, habit_id: int) -> None:
        habit = get_habit_or_404(self.db, habit_id)
        self.db.query(HabitLog).filter(HabitLog.habit_id == habit_id).delete(synchronize_session=False)
        self.db.delete(habit)
        self.db.commit()


class LogHabitUseCase:
    """One log per habit per member per day, plus a HABIT_COMPLETION credit"""

    def __init__(self, db: Session):
        self.db = db
        self.ledger = PointsLedger(db)

    def execute(
        self,
        habit_id: int,
        member_id: int,
        on_date: date | None = None,
        actor: Actor | None = None,
    ) -> HabitLog:
        on_date = on_date or local_today()
        habit = get_habit_or_404(self.db, habit_id)
        member = get_member_or_404(self.db, member_id)

        with member_lock(member.id):
            existing = self.db.query(HabitLog).filter(
                HabitLog.habit_id == habit.id,
                HabitLog.member_id == member.id,
                HabitLog.log_date == on_date,
            ).first()
            if existing is not None:
                raise HabitValidationError(ALREADY_LOGGED)

            log = HabitLog(
                habit_id=habit.id,
                member_id=member.id,
                log_date=on_date,
                points_awarded=max(habit.points, 0),
                created_at=utc_now(),
            )
            try:
                self.db.add(log)
                self.db.flush()
            except IntegrityError:
                self.db.rollback()
                raise HabitValidationError(ALREADY_LOGGED)

            if log.points_awarded:
                self.ledger.record_transaction(
                    member_id=member.id,
                    amount=log.points_awarded,
                    tx_type=TX_HABIT_COMPLETION,
                    description=f"Completed: {habit.name}",
                    habit_log_id=log.id,
                )
                record_audit(
                    self.db, action=ACTION_HABIT_POINTS_EARNED, entity_type=ENTITY_HABIT,
                    entity_id=habit.id, actor=actor,
                    new_value={"memberId": member.id, "points": log.points_awarded, "date": on_date.isoformat()},
                )
            self.db.commit()

        return log


class UndoHabitLogUseCase:
    """Delete the log and append a HABIT_UNDO entry for the points it earned"""

    def __init__(self, db: Session):
        self.db = db
        self.ledger = PointsLedger(db)

    def execute(
        self,
        habit_id: int,
        member_id: int,
        on_date: date | None = None,
        actor: Actor | None = None,
    ) -> int:
        on_date = on_date or local_today()
        habit = get_habit_or_404(self.db, habit_id)

        with member_lock(member_id):
            log = self.db.query(HabitLog).filter(
                HabitLog.habit_id == habit_id,
                HabitLog.member_id == member_id,
                HabitLog.log_date == on_date,
            ).first()
            if log is None:
                raise NotFound("Habit log not found")

            reversed_points = log.points_awarded
            if reversed_points:
                balance = self.ledger.get_balance(member_id)
                try:
                    ensure_debit_allowed(balance, reversed_points)
                except InsufficientPointsError:
                    raise HabitValidationError(
                        "Points from this habit have already been spent",
                        balance=balance,
                        required=reversed_points,
                    )
                self.ledger.record_transaction(
                    member_id=member_id,
                    amount=-reversed_points,
                    tx_type=TX_HABIT_UNDO,
                    description=f"Undone: {habit.name}",
                    habit_log_id=log.id,
                )
            record_audit(
                self.db, action=ACTION_UNDO_HABIT, entity_type=ENTITY_HABIT,
                entity_id=habit.id, actor=actor,
                old_value={"memberId": member_id, "points": reversed_points, "date": on_date.isoformat()},
                description=f"Undid {habit.name}",
            )
            self.db.delete(log)
            self.db.commit()

        return reversed_points
