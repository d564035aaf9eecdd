"""Points ledger use cases and balance queries"""
import logging
from datetime import datetime

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from famboard.application.audit import Actor, record_audit
from famboard.application.errors import NotFound, PermissionDenied, ValidationFailed
from famboard.application.locks import member_lock
from famboard.config import get_settings
from famboard.domain.audit import ACTION_AWARD_POINTS, ACTION_DEDUCT_POINTS, ENTITY_POINTS
from famboard.domain.member import ROLE_CHILD, is_child, is_parent
from famboard.domain.points import (
    POINTS_MAX, TRANSACTION_TYPES, TX_BONUS, TX_DEDUCTION, InsufficientPointsError,
    adjustment_type, ensure_debit_allowed,
)
from famboard.infrastructure.db.models import FamilyMember, PointTransaction
from famboard.utils.clock import utc_now

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_PAGE = 20


class PointsValidationError(ValidationFailed):
    pass


class PointsLedger:
    """
    Append-only ledger access

    No update or delete: reversals are new rows with the opposite sign.
    """

    def __init__(self, db: Session):
        self.db = db

    def record_transaction(
        self,
        member_id: int,
        amount: int,
        tx_type: str,
        description: str | None = None,
        chore_completion_id: int | None = None,
        habit_log_id: int | None = None,
        redemption_id: int | None = None,
        created_by_id: int | None = None,
        created_at: datetime | None = None,
    ) -> PointTransaction:
        if tx_type not in TRANSACTION_TYPES:
            raise PointsValidationError(f"Unknown transaction type: {tx_type}")
        if amount == 0:
            raise PointsValidationError("Amount must be a non-zero integer")

        tx = PointTransaction(
            member_id=member_id,
            amount=amount,
            type=tx_type,
            description=description,
            chore_completion_id=chore_completion_id,
            habit_log_id=habit_log_id,
            redemption_id=redemption_id,
            created_by_id=created_by_id,
            created_at=created_at or utc_now(),
        )
        self.db.add(tx)
        self.db.flush()
        return tx

    def get_balance(self, member_id: int) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(PointTransaction.amount), 0))
            .filter(PointTransaction.member_id == member_id)
            .scalar()
        )
        return int(total or 0)

    def _lifetime_totals(self, member_id: int) -> tuple[int, int]:
        earned, spent = (
            self.db.query(
                func.coalesce(func.sum(case((PointTransaction.amount > 0, PointTransaction.amount), else_=0)), 0),
                func.coalesce(func.sum(case((PointTransaction.amount < 0, -PointTransaction.amount), else_=0)), 0),
            )
            .filter(PointTransaction.member_id == member_id)
            .one()
        )
        return int(earned or 0), int(spent or 0)

    def summary(self, member: FamilyMember) -> dict:
        earned, spent = self._lifetime_totals(member.id)
        return {
            "memberId": member.id,
            "memberName": member.name,
            "memberColor": member.color,
            "memberAvatar": member.avatar,
            "balance": self.get_balance(member.id),
            "lifetimeEarned": earned,
            "lifetimeSpent": spent,
        }

    def list_transactions(
        self,
        member_id: int,
        limit: int = DEFAULT_LEDGER_PAGE,
        offset: int = 0,
        tx_type: str | None = None,
    ) -> tuple[list[PointTransaction], int]:
        query = self.db.query(PointTransaction).filter(PointTransaction.member_id == member_id)
        if tx_type:
            query = query.filter(PointTransaction.type == tx_type)
        total = query.count()
        rows = (
            query.order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
            .offset(max(0, offset))
            .limit(max(1, limit))
            .all()
        )
        return rows, total


def lock_member(db: Session, member_id: int) -> FamilyMember | None:
    """Load a member, taking a row lock on PostgreSQL"""
    query = db.query(FamilyMember).filter(FamilyMember.id == member_id)
    if get_settings().is_postgres():
        query = query.with_for_update()
    return query.first()


def serialize_transaction(tx: PointTransaction) -> dict:
    return {
        "id": tx.id,
        "memberId": tx.member_id,
        "amount": tx.amount,
        "type": tx.type,
        "description": tx.description,
        "choreCompletionId": tx.chore_completion_id,
        "habitLogId": tx.habit_log_id,
        "redemptionId": tx.redemption_id,
        "createdAt": tx.created_at.isoformat() if tx.created_at else None,
    }


def get_member_or_404(db: Session, member_id: int) -> FamilyMember:
    member = db.query(FamilyMember).filter(FamilyMember.id == member_id).first()
    if member is None:
        raise NotFound("Family member not found")
    return member


def list_child_balances(db: Session) -> list[dict]:
    ledger = PointsLedger(db)
    children = (
        db.query(FamilyMember)
        .filter(FamilyMember.role == ROLE_CHILD)
        .order_by(FamilyMember.name.asc())
        .all()
    )
    return [ledger.summary(child) for child in children]


class AwardPointsUseCase:
    """Parent gives a child bonus points"""

    def __init__(self, db: Session):
        self.db = db
        self.ledger = PointsLedger(db)

    def execute(
        self,
        member_id: int,
        amount: int,
        description: str | None = None,
        awarded_by_id: int | None = None,
        actor: Actor | None = None,
    ) -> tuple[PointTransaction, int]:
        if amount <= 0 or amount > POINTS_MAX:
            raise PointsValidationError(f"Amount must be between 1 and {POINTS_MAX}")

        recipient = get_member_or_404(self.db, member_id)
        if not is_child(recipient.role):
            raise PermissionDenied("Only children can receive points")

        if awarded_by_id is not None:
            awarder = self.db.query(FamilyMember).filter(FamilyMember.id == awarded_by_id).first()
            if awarder is None:
                raise NotFound("Awarding member not found")
            if not is_parent(awarder.role):
                raise PermissionDenied("Only parents can award points")

        tx = self.ledger.record_transaction(
            member_id=member_id,
            amount=amount,
            tx_type=TX_BONUS,
            description=description or "Bonus points",
            created_by_id=awarded_by_id,
        )
        new_balance = self.ledger.get_balance(member_id)
        record_audit(
            self.db,
            action=ACTION_AWARD_POINTS,
            entity_type=ENTITY_POINTS,
            entity_id=member_id,
            actor=actor,
            new_value={"amount": amount, "balance": new_balance, "transactionId": tx.id},
            description=f"Awarded {amount} points to {recipient.name}",
        )
        self.db.commit()
        return tx, new_balance


class AdjustPointsUseCase:
    """
    Manual +/- adjustment (kiosk / POS)

    A deduction may not take the balance below zero; check and insert run
    under the member lock in one transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        self.ledger = PointsLedger(db)

    def execute(
        self,
        member_id: int,
        amount: int,
        reason: str | None = None,
        actor: Actor | None = None,
    ) -> tuple[PointTransaction, int]:
        try:
            tx_type = adjustment_type(amount)
        except ValueError as e:
            raise PointsValidationError(str(e))
        if abs(amount) > POINTS_MAX:
            raise PointsValidationError(f"Amount must be between -{POINTS_MAX} and {POINTS_MAX}")

        with member_lock(member_id):
            member = lock_member(self.db, member_id)
            if member is None:
                raise NotFound("Family member not found")

            balance = self.ledger.get_balance(member_id)
            if tx_type == TX_DEDUCTION:
                try:
                    ensure_debit_allowed(balance, -amount)
                except InsufficientPointsError:
                    self.db.rollback()
                    raise PointsValidationError("Insufficient points", currentBalance=balance)

            default_reason = "Bonus points" if tx_type == TX_BONUS else "Points deducted"
            tx = self.ledger.record_transaction(
                member_id=member_id,
                amount=amount,
                tx_type=tx_type,
                description=reason or default_reason,
                created_by_id=actor.member_id if actor else None,
            )
            new_balance = balance + amount
            record_audit(
                self.db,
                action=ACTION_AWARD_POINTS if amount > 0 else ACTION_DEDUCT_POINTS,
                entity_type=ENTITY_POINTS,
                entity_id=member_id,
                actor=actor,
                old_value={"balance": balance},
                new_value={"balance": new_balance, "amount": amount, "transactionId": tx.id},
                description=reason,
            )
            self.db.commit()

        return tx, new_balance
