"""Family members, NFC cards and the member portal view"""
import logging
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from famboard.application.audit import Actor, record_audit
from famboard.application.errors import Conflict, NotFound, ValidationFailed
from famboard.application.points import PointsLedger, get_member_or_404
from famboard.application.rewards import list_rewards, serialize_reward
from famboard.domain.audit import (
    ACTION_CREATE_MEMBER, ACTION_DELETE_MEMBER, ACTION_UPDATE_MEMBER, ENTITY_MEMBER,
)
from famboard.domain.chore_schedule import is_due_on
from famboard.domain.member import AVATAR_TYPES, ROLE_CHILD, default_avatar, is_valid_role
from famboard.infrastructure.db.models import (
    ChoreAssignment, Chore, ChoreCompletion, FamilyMember, HabitLog, RecipeRating,
)
from famboard.utils.clock import local_today

logger = logging.getLogger(__name__)

MEMBER_FIELDS = ["name", "avatar", "avatar_type", "color", "role", "email", "birthday"]


class MemberValidationError(ValidationFailed):
    pass


def serialize_member(member: FamilyMember) -> dict:
    return {
        "id": member.id,
        "name": member.name,
        "role": member.role,
        "avatar": member.avatar,
        "avatarType": member.avatar_type,
        "color": member.color,
        "email": member.email,
        "birthday": member.birthday.isoformat() if member.birthday else None,
        "hasCard": member.card_id is not None,
    }


def list_members(db: Session) -> list[FamilyMember]:
    return db.query(FamilyMember).order_by(FamilyMember.role.desc(), FamilyMember.name.asc()).all()


def _check_role_and_avatar(role: str | None, avatar_type: str | None) -> None:
    if role is not None and not is_valid_role(role):
        raise MemberValidationError("role must be PARENT or CHILD")
    if avatar_type is not None and avatar_type not in AVATAR_TYPES:
        raise MemberValidationError(f"avatarType must be one of: {', '.join(AVATAR_TYPES)}")


class CreateMemberUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        name: str,
        color: str,
        role: str = ROLE_CHILD,
        avatar: str | None = None,
        avatar_type: str = "initial",
        email: str | None = None,
        birthday: date | None = None,
        actor: Actor | None = None,
    ) -> FamilyMember:
        name = name.strip()
        if not name:
            raise MemberValidationError("Name is required")
        if not color:
            raise MemberValidationError("Color is required")
        _check_role_and_avatar(role, avatar_type)

        member = FamilyMember(
            name=name,
            color=color,
            role=role,
            avatar=avatar or default_avatar(name),
            avatar_type=avatar_type,
            email=email,
            birthday=birthday,
        )
        self.db.add(member)
        self.db.flush()
        record_audit(
            self.db, action=ACTION_CREATE_MEMBER, entity_type=ENTITY_MEMBER,
            entity_id=member.id, actor=actor, new_value=serialize_member(member),
        )
        self.db.commit()
        return member


class UpdateMemberUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, member_id: int, changes: dict[str, Any], actor: Actor | None = None) -> FamilyMember:
        member = get_member_or_404(self.db, member_id)
        unknown = set(changes) - set(MEMBER_FIELDS)
        if unknown:
            raise MemberValidationError(f"Unknown member fields: {', '.join(sorted(unknown))}")
        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                raise MemberValidationError("Name is required")
        if "color" in changes and not changes["color"]:
            raise MemberValidationError("Color is required")
        _check_role_and_avatar(changes.get("role"), changes.get("avatar_type"))

        old_value = serialize_member(member)
        for key, value in changes.items():
            setattr(member, key, value)
        self.db.flush()
        record_audit(
            self.db, action=ACTION_UPDATE_MEMBER, entity_type=ENTITY_MEMBER,
            entity_id=member.id, actor=actor, old_value=old_value, new_value=serialize_member(member),
        )
        self.db.commit()
        return member


class DeleteMemberUseCase:
    """
    Removes the member with their assignments, completions, habit logs and
    ratings. Ledger rows and redemptions are kept for the audit trail.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, member_id: int, actor: Actor | None = None) -> None:
        member = get_member_or_404(self.db, member_id)
        old_value = serialize_member(member)

        self.db.query(ChoreAssignment).filter(ChoreAssignment.member_id == member_id).delete(synchronize_session=False)
        self.db.query(ChoreCompletion).filter(ChoreCompletion.completed_by_id == member_id).delete(synchronize_session=False)
        self.db.query(HabitLog).filter(HabitLog.member_id == member_id).delete(synchronize_session=False)
        self.db.query(RecipeRating).filter(RecipeRating.member_id == member_id).delete(synchronize_session=False)
        self.db.delete(member)

        record_audit(
            self.db, action=ACTION_DELETE_MEMBER, entity_type=ENTITY_MEMBER,
            entity_id=member_id, actor=actor, old_value=old_value,
        )
        self.db.commit()
        logger.info("Family member %s removed", member_id)


# === NFC cards ===

class RegisterCardUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, member_id: int, card_id: str, actor: Actor | None = None) -> FamilyMember:
        card_id = card_id.strip()
        if not card_id:
            raise MemberValidationError("cardId is required")
        member = get_member_or_404(self.db, member_id)

        owner = self.db.query(FamilyMember).filter(FamilyMember.card_id == card_id).first()
        if owner is not None and owner.id != member.id:
            raise Conflict("Card is already registered to another member", memberName=owner.name)

        old_card = member.card_id
        member.card_id = card_id
        record_audit(
            self.db, action=ACTION_UPDATE_MEMBER, entity_type=ENTITY_MEMBER,
            entity_id=member.id, actor=actor,
            old_value={"cardRegistered": old_card is not None}, new_value={"cardRegistered": True},
            description="NFC card registered",
        )
        self.db.commit()
        return member


class UnregisterCardUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, member_id: int, actor: Actor | None = None) -> FamilyMember:
        member = get_member_or_404(self.db, member_id)
        member.card_id = None
        record_audit(
            self.db, action=ACTION_UPDATE_MEMBER, entity_type=ENTITY_MEMBER,
            entity_id=member.id, actor=actor, new_value={"cardRegistered": False},
            description="NFC card unregistered",
        )
        self.db.commit()
        return member


# === Member portal ===

def _todays_chores_for(db: Session, member_id: int, today: date) -> list[dict]:
    chore_ids = [
        a.chore_id for a in db.query(ChoreAssignment).filter(ChoreAssignment.member_id == member_id).all()
    ]
    if not chore_ids:
        return []
    chores = (
        db.query(Chore)
        .filter(Chore.id.in_(chore_ids), Chore.is_active == True)  # noqa: E712
        .order_by(Chore.title.asc())
        .all()
    )
    done_ids = {
        c.chore_id for c in db.query(ChoreCompletion).filter(
            ChoreCompletion.chore_id.in_(chore_ids),
            ChoreCompletion.completed_date == today,
        ).all()
    }
    return [
        {
            "id": chore.id,
            "title": chore.title,
            "icon": chore.icon,
            "points": chore.points,
            "isCompleted": chore.id in done_ids,
        }
        for chore in chores
        if is_due_on(chore.recurrence, chore.recur_days, chore.due_date, today)
    ]


def get_member_portal(db: Session, member_id: int, today: date | None = None) -> dict:
    """Member, points summary, today's assigned chores and affordable rewards"""
    member = get_member_or_404(db, member_id)
    today = today or local_today()
    points = PointsLedger(db).summary(member)
    rewards = [
        serialize_reward(r) | {"canAfford": r.points_cost <= points["balance"]}
        for r in list_rewards(db)
    ]
    return {
        "member": serialize_member(member),
        "points": points,
        "chores": _todays_chores_for(db, member.id, today),
        "rewards": rewards,
    }


def get_member_by_card(db: Session, card_id: str, today: date | None = None) -> dict:
    member = db.query(FamilyMember).filter(FamilyMember.card_id == card_id).first()
    if member is None:
        raise NotFound("Card not registered")
    return get_member_portal(db, member.id, today)
