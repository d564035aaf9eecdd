"""
Points ledger endpoints

Balances are public so the shared screen can show them without a login.
"""
from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.orm import Session

from famboard.api.deps import AuthContext, ensure_self_or_permission, get_db, require_authenticated, require_permission
from famboard.api.schemas import CamelModel
from famboard.application.errors import PermissionDenied
from famboard.application.points import (
    DEFAULT_LEDGER_PAGE, AdjustPointsUseCase, AwardPointsUseCase, PointsLedger,
    get_member_or_404, list_child_balances, serialize_transaction,
)
from famboard.domain.member import PERM_POINTS_AWARD, PERM_POINTS_DEDUCT, PERM_POINTS_VIEW_ALL, has_permission
from famboard.utils.validation import DESCRIPTION_MAX, POINTS_MAX, POINTS_MIN


router = APIRouter(prefix="/api/v1/points", tags=["points"])


# === Request/Response models ===

class AwardPointsRequest(CamelModel):
    member_id: int
    amount: int = Field(gt=0, le=POINTS_MAX)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX)


class AdjustPointsRequest(CamelModel):
    member_id: int
    amount: int = Field(ge=POINTS_MIN, le=POINTS_MAX)
    reason: str | None = Field(default=None, max_length=DESCRIPTION_MAX)


# === Endpoints ===

@router.get("/balances")
def get_balances(db: Session = Depends(get_db)):
    """Every child's balance (public)"""
    return {"balances": list_child_balances(db)}


@router.get("/balance/{member_id}")
def get_balance(member_id: int, db: Session = Depends(get_db)):
    member = get_member_or_404(db, member_id)
    return PointsLedger(db).summary(member)


@router.get("/ledger/{member_id}")
def get_ledger(
    member_id: int,
    limit: int = Query(default=DEFAULT_LEDGER_PAGE, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    type: str | None = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_authenticated),
):
    """Transactions newest first; children see only their own"""
    ensure_self_or_permission(auth, member_id, PERM_POINTS_VIEW_ALL)
    member = get_member_or_404(db, member_id)
    ledger = PointsLedger(db)
    rows, total = ledger.list_transactions(member.id, limit=limit, offset=offset, tx_type=type)
    return {
        "summary": ledger.summary(member),
        "transactions": [serialize_transaction(tx) for tx in rows],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.post("/award", status_code=201)
def award_points(
    req: AwardPointsRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_POINTS_AWARD)),
):
    tx, balance = AwardPointsUseCase(db).execute(
        member_id=req.member_id,
        amount=req.amount,
        description=req.description,
        awarded_by_id=auth.member_id,
        actor=auth.actor,
    )
    return {"transaction": serialize_transaction(tx), "newBalance": balance}


@router.post("/adjust", status_code=201)
def adjust_points(
    req: AdjustPointsRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_authenticated),
):
    """Credits need points:award, debits need points:deduct"""
    needed = PERM_POINTS_AWARD if req.amount > 0 else PERM_POINTS_DEDUCT
    if not has_permission(auth.role, needed):
        raise PermissionDenied("Permission denied", required=needed)
    tx, balance = AdjustPointsUseCase(db).execute(
        member_id=req.member_id,
        amount=req.amount,
        reason=req.reason,
        actor=auth.actor,
    )
    return {"transaction": serialize_transaction(tx), "newBalance": balance}
