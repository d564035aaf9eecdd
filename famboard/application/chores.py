"""Chore use cases: CRUD, daily board, completion and undo"""
import logging
from datetime import date
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from famboard.application.audit import Actor, record_audit
from famboard.application.errors import NotFound, ValidationFailed
from famboard.application.locks import chore_lock, member_lock
from famboard.application.points import PointsLedger, get_member_or_404
from famboard.domain.audit import (
    ACTION_COMPLETE_CHORE, ACTION_CREATE_CHORE, ACTION_DELETE_CHORE, ACTION_UNDO_CHORE,
    ACTION_UPDATE_CHORE, ENTITY_CHORE,
)
from famboard.domain.chore_schedule import (
    PRIORITIES, PRIORITY_NORMAL, RECURRENCES, is_due_on, validate_recur_days,
)
from famboard.domain.member import is_child
from famboard.domain.points import (
    TX_CHORE_COMPLETION, TX_CHORE_UNDO, InsufficientPointsError, ensure_debit_allowed,
)
from famboard.infrastructure.db.models import Chore, ChoreAssignment, ChoreCompletion, FamilyMember
from famboard.utils.clock import local_today, utc_now

logger = logging.getLogger(__name__)

CHORE_FIELDS = [
    "title", "description", "icon", "points", "priority", "recurrence",
    "recur_days", "recur_time", "due_date", "is_active",
]

ALREADY_COMPLETED = "Chore already completed today"


class ChoreValidationError(ValidationFailed):
    pass


def get_chore_or_404(db: Session, chore_id: int) -> Chore:
    chore = db.query(Chore).filter(Chore.id == chore_id).first()
    if chore is None:
        raise NotFound("Chore not found")
    return chore


def _validate_fields(fields: dict[str, Any]) -> None:
    if "title" in fields:
        fields["title"] = (fields["title"] or "").strip()
        if not fields["title"]:
            raise ChoreValidationError("Title is required")
    if fields.get("priority") is not None and fields["priority"] not in PRIORITIES:
        raise ChoreValidationError(f"priority must be one of: {', '.join(PRIORITIES)}")
    if fields.get("recurrence") is not None and fields["recurrence"] not in RECURRENCES:
        raise ChoreValidationError(f"recurrence must be one of: {', '.join(RECURRENCES)}")
    if fields.get("points") is not None and fields["points"] < 0:
        raise ChoreValidationError("points cannot be negative")
    if "recur_days" in fields:
        try:
            fields["recur_days"] = validate_recur_days(fields["recur_days"])
        except ValueError as e:
            raise ChoreValidationError(str(e))


def _replace_assignments(db: Session, chore_id: int, assignee_ids: list[int]) -> None:
    db.query(ChoreAssignment).filter(ChoreAssignment.chore_id == chore_id).delete(synchronize_session=False)
    seen: set[int] = set()
    for order, member_id in enumerate(assignee_ids):
        if member_id in seen:
            continue
        seen.add(member_id)
        get_member_or_404(db, member_id)
        db.add(ChoreAssignment(chore_id=chore_id, member_id=member_id, rotation_order=order))
    db.flush()


def _assignees(db: Session, chore_ids: list[int]) -> dict[int, list[dict]]:
    if not chore_ids:
        return {}
    rows = (
        db.query(ChoreAssignment, FamilyMember)
        .join(FamilyMember, FamilyMember.id == ChoreAssignment.member_id)
        .filter(ChoreAssignment.chore_id.in_(chore_ids))
        .order_by(ChoreAssignment.rotation_order.asc())
        .all()
    )
    result: dict[int, list[dict]] = {}
    for assignment, member in rows:
        result.setdefault(assignment.chore_id, []).append({
            "id": member.id,
            "name": member.name,
            "color": member.color,
            "avatar": member.avatar,
            "rotationOrder": assignment.rotation_order,
        })
    return result


def serialize_chore(chore: Chore, assignees: list[dict] | None = None) -> dict:
    return {
        "id": chore.id,
        "title": chore.title,
        "description": chore.description,
        "icon": chore.icon,
        "points": chore.points,
        "priority": chore.priority,
        "recurrence": chore.recurrence,
        "recurDays": chore.recur_days,
        "recurTime": chore.recur_time,
        "dueDate": chore.due_date.isoformat() if chore.due_date else None,
        "isActive": chore.is_active,
        "assignees": assignees or [],
    }


def serialize_completion(completion: ChoreCompletion) -> dict:
    return {
        "id": completion.id,
        "choreId": completion.chore_id,
        "completedById": completion.completed_by_id,
        "completedDate": completion.completed_date.isoformat(),
        "completedAt": completion.completed_at.isoformat(),
        "pointsAwarded": completion.points_awarded,
    }


def todays_completion(db: Session, chore_id: int, today: date | None = None) -> ChoreCompletion | None:
    return db.query(ChoreCompletion).filter(
        ChoreCompletion.chore_id == chore_id,
        ChoreCompletion.completed_date == (today or local_today()),
    ).first()


def get_chore_detail(db: Session, chore_id: int) -> dict:
    chore = get_chore_or_404(db, chore_id)
    recent = (
        db.query(ChoreCompletion)
        .filter(ChoreCompletion.chore_id == chore_id)
        .order_by(ChoreCompletion.completed_at.desc())
        .limit(10)
        .all()
    )
    data = serialize_chore(chore, _assignees(db, [chore.id]).get(chore.id))
    data["recentCompletions"] = [serialize_completion(c) for c in recent]
    return data


def list_chores(db: Session, include_all: bool = False, today: date | None = None) -> list[dict]:
    """
    Active chores with today's completion state

    include_all=False keeps only chores due today (see chore_schedule.is_due_on).
    """
    today = today or local_today()
    chores = (
        db.query(Chore)
        .filter(Chore.is_active == True)  # noqa: E712
        .order_by(Chore.recur_time.asc(), Chore.title.asc())
        .all()
    )
    if not include_all:
        chores = [c for c in chores if is_due_on(c.recurrence, c.recur_days, c.due_date, today)]

    ids = [c.id for c in chores]
    assignees = _assignees(db, ids)
    completions = {
        c.chore_id: c for c in db.query(ChoreCompletion).filter(
            ChoreCompletion.chore_id.in_(ids),
            ChoreCompletion.completed_date == today,
        ).all()
    } if ids else {}
    completers = {
        m.id: m for m in db.query(FamilyMember).filter(
            FamilyMember.id.in_({c.completed_by_id for c in completions.values()})
        ).all()
    } if completions else {}

    result = []
    for chore in chores:
        data = serialize_chore(chore, assignees.get(chore.id))
        completion = completions.get(chore.id)
        data["isCompleted"] = completion is not None
        completer = completers.get(completion.completed_by_id) if completion else None
        data["completedBy"] = {"id": completer.id, "name": completer.name, "color": completer.color} if completer else None
        result.append(data)
    return result


class CreateChoreUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        title: str,
        points: int = 0,
        description: str | None = None,
        icon: str | None = None,
        priority: str = PRIORITY_NORMAL,
        recurrence: str | None = None,
        recur_days: list[str] | None = None,
        recur_time: str | None = None,
        due_date: date | None = None,
        assignee_ids: list[int] | None = None,
        actor: Actor | None = None,
    ) -> Chore:
        fields = {
            "title": title, "points": points, "description": description, "icon": icon,
            "priority": priority or PRIORITY_NORMAL, "recurrence": recurrence,
            "recur_days": recur_days, "recur_time": recur_time, "due_date": due_date,
        }
        _validate_fields(fields)

        chore = Chore(is_active=True, **fields)
        self.db.add(chore)
        self.db.flush()
        if assignee_ids:
            _replace_assignments(self.db, chore.id, assignee_ids)

        record_audit(
            self.db, action=ACTION_CREATE_CHORE, entity_type=ENTITY_CHORE,
            entity_id=chore.id, actor=actor, new_value=serialize_chore(chore),
        )
        self.db.commit()
        return chore


class UpdateChoreUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        chore_id: int,
        changes: dict[str, Any],
        assignee_ids: list[int] | None = None,
        actor: Actor | None = None,
    ) -> Chore:
        chore = get_chore_or_404(self.db, chore_id)
        unknown = set(changes) - set(CHORE_FIELDS)
        if unknown:
            raise ChoreValidationError(f"Unknown chore fields: {', '.join(sorted(unknown))}")
        _validate_fields(changes)

        old_value = serialize_chore(chore)
        for key, value in changes.items():
            setattr(chore, key, value)
        if assignee_ids is not None:
            _replace_assignments(self.db, chore.id, assignee_ids)
        self.db.flush()

        record_audit(
            self.db, action=ACTION_UPDATE_CHORE, entity_type=ENTITY_CHORE,
            entity_id=chore.id, actor=actor, old_value=old_value, new_value=serialize_chore(chore),
        )
        self.db.commit()
        return chore


class DeleteChoreUseCase:
    """Removes the chore, its assignments and completions; ledger rows stay"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, chore_id: int, actor: Actor | None = None) -> None:
        chore = get_chore_or_404(self.db, chore_id)
        old_value = serialize_chore(chore)
        self.db.query(ChoreAssignment).filter(ChoreAssignment.chore_id == chore_id).delete(synchronize_session=False)
        self.db.query(ChoreCompletion).filter(ChoreCompletion.chore_id == chore_id).delete(synchronize_session=False)
        self.db.delete(chore)
        record_audit(
            self.db, action=ACTION_DELETE_CHORE, entity_type=ENTITY_CHORE,
            entity_id=chore_id, actor=actor, old_value=old_value,
        )
        self.db.commit()


class CompleteChoreUseCase:
    """
    Mark a chore done for today, crediting a child completer

    The existence check and the insert run under the chore lock in one
    transaction; the (chore_id, completed_date) unique key rejects any
    insert that still races through.
    """

    def __init__(self, db: Session):
        self.db = db
        self.ledger = PointsLedger(db)

    def execute(
        self,
        chore_id: int,
        completed_by_id: int,
        today: date | None = None,
        actor: Actor | None = None,
    ) -> tuple[ChoreCompletion, int]:
        today = today or local_today()

        with chore_lock(chore_id):
            chore = get_chore_or_404(self.db, chore_id)
            member = get_member_or_404(self.db, completed_by_id)

            existing = self.db.query(ChoreCompletion).filter(
                ChoreCompletion.chore_id == chore_id,
                ChoreCompletion.completed_date == today,
            ).first()
            if existing is not None:
                raise ChoreValidationError(ALREADY_COMPLETED)

            points_awarded = chore.points if (is_child(member.role) and chore.points > 0) else 0
            completion = ChoreCompletion(
                chore_id=chore.id,
                completed_by_id=member.id,
                completed_date=today,
                completed_at=utc_now(),
                points_awarded=points_awarded,
            )
            try:
                self.db.add(completion)
                self.db.flush()
            except IntegrityError:
                self.db.rollback()
                raise ChoreValidationError(ALREADY_COMPLETED)

            if points_awarded:
                self.ledger.record_transaction(
                    member_id=member.id,
                    amount=points_awarded,
                    tx_type=TX_CHORE_COMPLETION,
                    description=f"Completed: {chore.title}",
                    chore_completion_id=completion.id,
                )

            record_audit(
                self.db, action=ACTION_COMPLETE_CHORE, entity_type=ENTITY_CHORE,
                entity_id=chore.id, actor=actor,
                new_value={"completedById": member.id, "date": today.isoformat(), "pointsAwarded": points_awarded},
                description=f"{member.name} completed {chore.title}",
            )
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                raise ChoreValidationError(ALREADY_COMPLETED)

        return completion, points_awarded


class UndoChoreCompletionUseCase:
    """
    Remove today's completion; awarded points are reversed by a CHORE_UNDO
    entry rather than by deleting the CHORE_COMPLETION row.
    """

    def __init__(self, db: Session):
        self.db = db
        self.ledger = PointsLedger(db)

    def execute(self, chore_id: int, today: date | None = None, actor: Actor | None = None) -> int:
        """Returns the number of points taken back"""
        today = today or local_today()

        with chore_lock(chore_id):
            chore = get_chore_or_404(self.db, chore_id)
            completion = todays_completion(self.db, chore_id, today)
            if completion is None:
                raise NotFound("No completion found for today")

            reversed_points = completion.points_awarded
            with member_lock(completion.completed_by_id):
                if reversed_points:
                    balance = self.ledger.get_balance(completion.completed_by_id)
                    try:
                        ensure_debit_allowed(balance, reversed_points)
                    except InsufficientPointsError:
                        raise ChoreValidationError(
                            "Points from this chore have already been spent",
                            balance=balance,
                            required=reversed_points,
                        )
                    self.ledger.record_transaction(
                        member_id=completion.completed_by_id,
                        amount=-reversed_points,
                        tx_type=TX_CHORE_UNDO,
                        description=f"Undone: {chore.title}",
                        chore_completion_id=completion.id,
                    )

                old_value = serialize_completion(completion)
                self.db.delete(completion)
                record_audit(
                    self.db, action=ACTION_UNDO_CHORE, entity_type=ENTITY_CHORE,
                    entity_id=chore.id, actor=actor, old_value=old_value,
                )
                self.db.commit()

        return reversed_points
