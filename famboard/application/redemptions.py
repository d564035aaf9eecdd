"""
Reward redemption workflow

A child requests a reward (PENDING); a parent approves or denies it once.
The balance is checked at request time, net of points held by other
PENDING requests, and again at approval time. Each check runs under the
requester's lock so two requests cannot both spend the same points.
"""
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from famboard.application.audit import Actor, record_audit
from famboard.application.errors import Conflict, NotFound, PermissionDenied, ValidationFailed
from famboard.application.locks import member_lock
from famboard.application.points import PointsLedger, lock_member
from famboard.application.rewards import get_points_settings, get_reward_or_404
from famboard.config import get_settings
from famboard.domain.audit import (
    ACTION_APPROVE_REDEMPTION, ACTION_DENY_REDEMPTION, ACTION_REQUEST_REDEMPTION, ENTITY_REDEMPTION,
)
from famboard.domain.member import is_child, is_parent
from famboard.domain.points import TX_REDEMPTION, InsufficientPointsError, ensure_debit_allowed
from famboard.domain.redemption import (
    REDEMPTION_DECISIONS, REDEMPTION_STATUS_APPROVED, REDEMPTION_STATUS_PENDING,
    Redemption, RedemptionStateError,
)
from famboard.infrastructure.db.models import FamilyMember, Reward, RewardRedemption
from famboard.utils.clock import utc_now

logger = logging.getLogger(__name__)


class RedemptionError(ValidationFailed):
    pass


def pending_points(db: Session, member_id: int) -> int:
    """Points held by the member's PENDING redemptions"""
    total = (
        db.query(func.coalesce(func.sum(RewardRedemption.points_spent), 0))
        .filter(
            RewardRedemption.requested_by_id == member_id,
            RewardRedemption.status == REDEMPTION_STATUS_PENDING,
        )
        .scalar()
    )
    return int(total or 0)


def serialize_redemption(
    redemption: RewardRedemption,
    reward: Reward | None = None,
    requester: FamilyMember | None = None,
) -> dict:
    data = {
        "id": redemption.id,
        "rewardId": redemption.reward_id,
        "requestedById": redemption.requested_by_id,
        "pointsSpent": redemption.points_spent,
        "status": redemption.status,
        "approvedById": redemption.approved_by_id,
        "approvedAt": redemption.approved_at.isoformat() if redemption.approved_at else None,
        "denialReason": redemption.denial_reason,
        "requestedAt": redemption.requested_at.isoformat() if redemption.requested_at else None,
    }
    if reward is not None:
        data["reward"] = {"id": reward.id, "name": reward.name, "icon": reward.icon}
    if requester is not None:
        data["requestedBy"] = {"id": requester.id, "name": requester.name, "color": requester.color}
    return data


class RequestRedemptionUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.ledger = PointsLedger(db)

    def execute(
        self,
        reward_id: int,
        requested_by_id: int,
        custom_points_amount: int | None = None,
        actor: Actor | None = None,
    ) -> RewardRedemption:
        """
        Raises:
            NotFound: member or reward missing
            PermissionDenied: requester is not a child
            RedemptionError: reward inactive, below cashout minimum, insufficient balance
        """
        with member_lock(requested_by_id):
            member = lock_member(self.db, requested_by_id)
            if member is None:
                raise NotFound("Family member not found")
            if not is_child(member.role):
                raise PermissionDenied("Only children can request rewards")

            reward = get_reward_or_404(self.db, reward_id)
            if not reward.is_active:
                raise RedemptionError("Reward is not available")

            if reward.is_cash_reward and custom_points_amount is not None:
                min_points = get_points_settings(self.db).min_cashout_points
                if custom_points_amount < min_points:
                    raise RedemptionError(f"Minimum cashout is {min_points} points")

            required = Redemption.points_required(
                reward.points_cost, reward.is_cash_reward, custom_points_amount
            )
            # points already promised to PENDING requests are not spendable
            balance = self.ledger.get_balance(member.id) - pending_points(self.db, member.id)
            try:
                ensure_debit_allowed(balance, required)
            except InsufficientPointsError:
                self.db.rollback()
                raise RedemptionError("Insufficient points", balance=balance, required=required)

            redemption = RewardRedemption(
                reward_id=reward.id,
                requested_by_id=member.id,
                points_spent=required,
                status=REDEMPTION_STATUS_PENDING,
                requested_at=utc_now(),
            )
            self.db.add(redemption)
            self.db.flush()

            record_audit(
                self.db,
                action=ACTION_REQUEST_REDEMPTION,
                entity_type=ENTITY_REDEMPTION,
                entity_id=redemption.id,
                actor=actor,
                new_value={"rewardId": reward.id, "pointsSpent": required, "status": REDEMPTION_STATUS_PENDING},
                description=f"{member.name} requested {reward.name}",
            )
            self.db.commit()

        return redemption


class DecideRedemptionUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.ledger = PointsLedger(db)

    def _load(self, redemption_id: int) -> RewardRedemption | None:
        query = self.db.query(RewardRedemption).filter(RewardRedemption.id == redemption_id)
        if get_settings().is_postgres():
            query = query.with_for_update()
        return query.first()

    def execute(
        self,
        redemption_id: int,
        status: str,
        approved_by_id: int | None = None,
        denial_reason: str | None = None,
        actor: Actor | None = None,
    ) -> RewardRedemption:
        """
        Move a PENDING redemption to APPROVED or DENIED

        Approval re-checks the balance and appends the REDEMPTION debit in
        the same transaction as the status change.
        """
        if status not in REDEMPTION_DECISIONS:
            raise RedemptionError("status must be APPROVED or DENIED")

        existing = self.db.query(RewardRedemption).filter(RewardRedemption.id == redemption_id).first()
        if existing is None:
            raise NotFound("Redemption not found")

        if approved_by_id is not None:
            approver = self.db.query(FamilyMember).filter(FamilyMember.id == approved_by_id).first()
            if approver is None or not is_parent(approver.role):
                raise PermissionDenied("Only parents can approve/deny redemptions")

        with member_lock(existing.requested_by_id):
            lock_member(self.db, existing.requested_by_id)
            redemption = self._load(redemption_id)
            # Re-read inside the lock: a concurrent decision may have landed
            self.db.refresh(redemption)
            try:
                new_status = Redemption.decide(redemption.status, status)
            except RedemptionStateError as e:
                raise Conflict(str(e))

            reward = self.db.query(Reward).filter(Reward.id == redemption.reward_id).first()
            reward_name = reward.name if reward else f"reward #{redemption.reward_id}"

            if new_status == REDEMPTION_STATUS_APPROVED:
                balance = self.ledger.get_balance(redemption.requested_by_id)
                try:
                    ensure_debit_allowed(balance, redemption.points_spent)
                except InsufficientPointsError:
                    self.db.rollback()
                    raise RedemptionError(
                        "Requester no longer has enough points",
                        balance=balance,
                        required=redemption.points_spent,
                    )
                self.ledger.record_transaction(
                    member_id=redemption.requested_by_id,
                    amount=-redemption.points_spent,
                    tx_type=TX_REDEMPTION,
                    description=f"Redeemed: {reward_name}",
                    redemption_id=redemption.id,
                    created_by_id=approved_by_id,
                )
            else:
                redemption.denial_reason = denial_reason

            redemption.status = new_status
            redemption.approved_by_id = approved_by_id
            redemption.approved_at = utc_now()

            record_audit(
                self.db,
                action=ACTION_APPROVE_REDEMPTION if new_status == REDEMPTION_STATUS_APPROVED else ACTION_DENY_REDEMPTION,
                entity_type=ENTITY_REDEMPTION,
                entity_id=redemption.id,
                actor=actor,
                old_value={"status": REDEMPTION_STATUS_PENDING},
                new_value={"status": new_status, "pointsSpent": redemption.points_spent, "denialReason": denial_reason},
                description=f"{new_status.capitalize()} {reward_name}",
            )
            self.db.commit()

        logger.info("Redemption %s %s", redemption_id, new_status)
        return redemption


def list_redemptions(
    db: Session,
    status: str | None = None,
    member_id: int | None = None,
) -> tuple[list[dict], int]:
    """(serialized redemptions newest first, number of PENDING rows overall)"""
    query = db.query(RewardRedemption)
    if status:
        query = query.filter(RewardRedemption.status == status)
    if member_id is not None:
        query = query.filter(RewardRedemption.requested_by_id == member_id)
    rows = query.order_by(RewardRedemption.requested_at.desc(), RewardRedemption.id.desc()).all()

    rewards = {r.id: r for r in db.query(Reward).filter(Reward.id.in_({r.reward_id for r in rows})).all()} if rows else {}
    members = {
        m.id: m for m in db.query(FamilyMember).filter(FamilyMember.id.in_({r.requested_by_id for r in rows})).all()
    } if rows else {}

    pending_count = (
        db.query(RewardRedemption)
        .filter(RewardRedemption.status == REDEMPTION_STATUS_PENDING)
        .count()
    )
    return (
        [serialize_redemption(r, rewards.get(r.reward_id), members.get(r.requested_by_id)) for r in rows],
        pending_count,
    )
