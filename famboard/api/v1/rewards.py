"""
Reward catalog, redemption workflow and points/cash settings
"""
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from famboard.api.deps import AuthContext, ensure_self_or_permission, get_db, require_authenticated, require_permission
from famboard.api.schemas import CamelModel, provided_fields
from famboard.application.errors import PermissionDenied, ValidationFailed
from famboard.application.redemptions import (
    DecideRedemptionUseCase, RequestRedemptionUseCase, list_redemptions, serialize_redemption,
)
from famboard.application.rewards import (
    CreateRewardUseCase, DeleteRewardUseCase, UpdatePointsSettingsUseCase, UpdateRewardUseCase,
    get_points_settings, get_reward_or_404, list_rewards, serialize_points_settings, serialize_reward,
)
from famboard.domain.member import (
    PERM_MANAGE_SETTINGS, PERM_POINTS_VIEW_ALL, PERM_REWARDS_APPROVE, PERM_REWARDS_CREATE,
    PERM_REWARDS_DELETE, PERM_REWARDS_EDIT, PERM_REWARDS_REJECT, has_permission,
)
from famboard.domain.redemption import REDEMPTION_STATUS_APPROVED, REDEMPTION_STATUSES
from famboard.utils.validation import DESCRIPTION_MAX, NAME_MAX, POINTS_MAX, strip_required


router = APIRouter(prefix="/api/v1/rewards", tags=["rewards"])


# === Request/Response models ===

class CreateRewardRequest(CamelModel):
    name: str = Field(max_length=NAME_MAX)
    points_cost: int = Field(gt=0, le=POINTS_MAX)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX)
    icon: str | None = Field(default=None, max_length=32)
    is_active: bool = True
    is_cash_reward: bool = False
    cash_value: Decimal | None = Field(default=None, ge=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return strip_required(v)


class UpdateRewardRequest(CamelModel):
    name: str | None = Field(default=None, max_length=NAME_MAX)
    points_cost: int | None = Field(default=None, gt=0, le=POINTS_MAX)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX)
    icon: str | None = Field(default=None, max_length=32)
    is_active: bool | None = None
    is_cash_reward: bool | None = None
    cash_value: Decimal | None = Field(default=None, ge=0)


class RedeemRequest(CamelModel):
    reward_id: int
    requester_id: int | None = None
    custom_points_amount: int | None = Field(default=None, gt=0, le=POINTS_MAX)


class DecideRedemptionRequest(CamelModel):
    status: str
    approver_id: int | None = None
    denial_reason: str | None = Field(default=None, max_length=DESCRIPTION_MAX)


class PointsSettingsRequest(CamelModel):
    cash_conversion_rate: Decimal | None = Field(default=None, gt=0)
    min_cashout_points: int | None = Field(default=None, ge=0)


# === Catalog ===

@router.get("")
def get_rewards(
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    db: Session = Depends(get_db),
):
    """Active rewards (public); includeInactive for the manage screen"""
    return {"rewards": [serialize_reward(r) for r in list_rewards(db, include_inactive=include_inactive)]}


@router.post("", status_code=201)
def create_reward(
    req: CreateRewardRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_REWARDS_CREATE)),
):
    reward = CreateRewardUseCase(db).execute(
        name=req.name,
        points_cost=req.points_cost,
        description=req.description,
        icon=req.icon,
        is_active=req.is_active,
        is_cash_reward=req.is_cash_reward,
        cash_value=req.cash_value,
        actor=auth.actor,
    )
    return {"reward": serialize_reward(reward)}


# Static paths first so "/redemptions" is not taken for a reward id

@router.get("/redemptions")
def get_redemptions(
    status: str | None = None,
    member_id: int | None = Query(default=None, alias="memberId"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_authenticated),
):
    """Newest first, with the overall pending count; children see only their own"""
    if status is not None and status not in REDEMPTION_STATUSES:
        raise ValidationFailed(f"status must be one of: {', '.join(REDEMPTION_STATUSES)}")
    if not has_permission(auth.role, PERM_POINTS_VIEW_ALL):
        member_id = auth.member_id
    items, pending_count = list_redemptions(db, status=status, member_id=member_id)
    return {"redemptions": items, "pendingCount": pending_count}


@router.post("/redeem", status_code=201)
def redeem_reward(
    req: RedeemRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_authenticated),
):
    requester_id = req.requester_id if req.requester_id is not None else auth.member_id
    if requester_id is None:
        raise ValidationFailed("requesterId is required")
    # parents may file on a child's behalf
    ensure_self_or_permission(auth, requester_id, PERM_REWARDS_APPROVE)
    redemption = RequestRedemptionUseCase(db).execute(
        reward_id=req.reward_id,
        requested_by_id=requester_id,
        custom_points_amount=req.custom_points_amount,
        actor=auth.actor,
    )
    return {"redemption": serialize_redemption(redemption)}


@router.put("/redemptions/{redemption_id}")
def decide_redemption(
    redemption_id: int,
    req: DecideRedemptionRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_authenticated),
):
    needed = PERM_REWARDS_APPROVE if req.status == REDEMPTION_STATUS_APPROVED else PERM_REWARDS_REJECT
    if not has_permission(auth.role, needed):
        raise PermissionDenied("Permission denied", required=needed)
    redemption = DecideRedemptionUseCase(db).execute(
        redemption_id=redemption_id,
        status=req.status,
        approved_by_id=req.approver_id if req.approver_id is not None else auth.member_id,
        denial_reason=req.denial_reason,
        actor=auth.actor,
    )
    return {"redemption": serialize_redemption(redemption)}


@router.get("/points-settings")
def get_points_settings_endpoint(db: Session = Depends(get_db)):
    row = get_points_settings(db)
    db.commit()
    return serialize_points_settings(row)


@router.put("/points-settings")
def update_points_settings(
    req: PointsSettingsRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_MANAGE_SETTINGS)),
):
    row = UpdatePointsSettingsUseCase(db).execute(
        cash_conversion_rate=req.cash_conversion_rate,
        min_cashout_points=req.min_cashout_points,
        actor=auth.actor,
    )
    return serialize_points_settings(row)


# === Single reward ===

@router.get("/{reward_id}")
def get_reward(reward_id: int, db: Session = Depends(get_db)):
    return {"reward": serialize_reward(get_reward_or_404(db, reward_id))}


@router.put("/{reward_id}")
def update_reward(
    reward_id: int,
    req: UpdateRewardRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_REWARDS_EDIT)),
):
    reward = UpdateRewardUseCase(db).execute(reward_id, provided_fields(req), actor=auth.actor)
    return {"reward": serialize_reward(reward)}


@router.delete("/{reward_id}")
def delete_reward(
    reward_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_REWARDS_DELETE)),
):
    DeleteRewardUseCase(db).execute(reward_id, actor=auth.actor)
    return {"success": True}
