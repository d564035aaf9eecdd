"""Reward catalog and points/cash settings"""
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from famboard.application.audit import Actor, record_audit
from famboard.application.errors import NotFound, ValidationFailed
from famboard.domain.audit import (
    ACTION_CREATE_REWARD, ACTION_DELETE_REWARD, ACTION_UPDATE_POINTS_SETTINGS, ACTION_UPDATE_REWARD,
    ENTITY_REWARD, ENTITY_SETTINGS,
)
from famboard.domain.redemption import REDEMPTION_STATUS_PENDING
from famboard.infrastructure.db.models import PointsSettings, Reward, RewardRedemption

POINTS_SETTINGS_ID = 1
DEFAULT_CASH_CONVERSION_RATE = Decimal("0.01")
DEFAULT_MIN_CASHOUT_POINTS = 100

REWARD_FIELDS = ["name", "description", "icon", "points_cost", "is_active", "is_cash_reward", "cash_value"]


class RewardValidationError(ValidationFailed):
    pass


def serialize_reward(reward: Reward) -> dict:
    return {
        "id": reward.id,
        "name": reward.name,
        "description": reward.description,
        "icon": reward.icon,
        "pointsCost": reward.points_cost,
        "isActive": reward.is_active,
        "isCashReward": reward.is_cash_reward,
        "cashValue": float(reward.cash_value) if reward.cash_value is not None else None,
    }


def get_reward_or_404(db: Session, reward_id: int) -> Reward:
    reward = db.query(Reward).filter(Reward.id == reward_id).first()
    if reward is None:
        raise NotFound("Reward not found")
    return reward


def list_rewards(db: Session, include_inactive: bool = False) -> list[Reward]:
    query = db.query(Reward)
    if not include_inactive:
        query = query.filter(Reward.is_active == True)  # noqa: E712
    return query.order_by(Reward.points_cost.asc(), Reward.id.asc()).all()


def get_points_settings(db: Session) -> PointsSettings:
    row = db.query(PointsSettings).filter(PointsSettings.id == POINTS_SETTINGS_ID).first()
    if row is None:
        row = PointsSettings(
            id=POINTS_SETTINGS_ID,
            cash_conversion_rate=DEFAULT_CASH_CONVERSION_RATE,
            min_cashout_points=DEFAULT_MIN_CASHOUT_POINTS,
        )
        db.add(row)
        db.flush()
    return row


def serialize_points_settings(row: PointsSettings) -> dict:
    return {
        "cashConversionRate": float(row.cash_conversion_rate),
        "minCashoutPoints": row.min_cashout_points,
    }


class UpdatePointsSettingsUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        cash_conversion_rate: Decimal | None = None,
        min_cashout_points: int | None = None,
        actor: Actor | None = None,
    ) -> PointsSettings:
        row = get_points_settings(self.db)
        old_value = serialize_points_settings(row)
        if cash_conversion_rate is not None:
            if cash_conversion_rate <= 0:
                raise RewardValidationError("cashConversionRate must be positive")
            row.cash_conversion_rate = cash_conversion_rate
        if min_cashout_points is not None:
            if min_cashout_points < 0:
                raise RewardValidationError("minCashoutPoints cannot be negative")
            row.min_cashout_points = min_cashout_points
        record_audit(
            self.db, action=ACTION_UPDATE_POINTS_SETTINGS, entity_type=ENTITY_SETTINGS,
            entity_id="points", actor=actor,
            old_value=old_value, new_value=serialize_points_settings(row),
        )
        self.db.commit()
        return row


class CreateRewardUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        name: str,
        points_cost: int,
        description: str | None = None,
        icon: str | None = None,
        is_active: bool = True,
        is_cash_reward: bool = False,
        cash_value: Decimal | None = None,
        actor: Actor | None = None,
    ) -> Reward:
        name = name.strip()
        if not name:
            raise RewardValidationError("Reward name is required")
        if points_cost <= 0:
            raise RewardValidationError("pointsCost must be positive")

        reward = Reward(
            name=name,
            description=description,
            icon=icon,
            points_cost=points_cost,
            is_active=is_active,
            is_cash_reward=is_cash_reward,
            cash_value=cash_value,
        )
        self.db.add(reward)
        self.db.flush()
        record_audit(
            self.db, action=ACTION_CREATE_REWARD, entity_type=ENTITY_REWARD,
            entity_id=reward.id, actor=actor, new_value=serialize_reward(reward),
        )
        self.db.commit()
        return reward


class UpdateRewardUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, reward_id: int, changes: dict[str, Any], actor: Actor | None = None) -> Reward:
        reward = get_reward_or_404(self.db, reward_id)
        unknown = set(changes) - set(REWARD_FIELDS)
        if unknown:
            raise RewardValidationError(f"Unknown reward fields: {', '.join(sorted(unknown))}")
        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                raise RewardValidationError("Reward name is required")
        if "points_cost" in changes and (changes["points_cost"] is None or changes["points_cost"] <= 0):
            raise RewardValidationError("pointsCost must be positive")

        old_value = serialize_reward(reward)
        for key, value in changes.items():
            setattr(reward, key, value)
        self.db.flush()
        record_audit(
            self.db, action=ACTION_UPDATE_REWARD, entity_type=ENTITY_REWARD,
            entity_id=reward.id, actor=actor, old_value=old_value, new_value=serialize_reward(reward),
        )
        self.db.commit()
        return reward


class DeleteRewardUseCase:
    """
    Rewards with pending redemptions cannot be removed; otherwise the row
    is deleted (decided redemptions keep their reward_id for history).
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, reward_id: int, actor: Actor | None = None) -> None:
        reward = get_reward_or_404(self.db, reward_id)
        pending = (
            self.db.query(RewardRedemption)
            .filter(
                RewardRedemption.reward_id == reward_id,
                RewardRedemption.status == REDEMPTION_STATUS_PENDING,
            )
            .count()
        )
        if pending:
            raise RewardValidationError("Reward has pending redemptions", pendingCount=pending)

        old_value = serialize_reward(reward)
        self.db.delete(reward)
        record_audit(
            self.db, action=ACTION_DELETE_REWARD, entity_type=ENTITY_REWARD,
            entity_id=reward_id, actor=actor, old_value=old_value,
        )
        self.db.commit()
