"""
Chore endpoints
"""
from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from famboard.api.deps import AuthContext, ensure_self_or_permission, get_db, require_permission
from famboard.api.schemas import CamelModel, provided_fields
from famboard.application.chores import (
    CompleteChoreUseCase, CreateChoreUseCase, DeleteChoreUseCase, UndoChoreCompletionUseCase,
    UpdateChoreUseCase, get_chore_detail, list_chores, serialize_completion,
    todays_completion,
)
from famboard.application.errors import NotFound, ValidationFailed
from famboard.domain.chore_schedule import PRIORITY_NORMAL
from famboard.domain.member import (
    PERM_CHORES_COMPLETE_ANY, PERM_CHORES_COMPLETE_OWN, PERM_CHORES_CREATE, PERM_CHORES_DELETE,
    PERM_CHORES_EDIT,
)
from famboard.utils.validation import DESCRIPTION_MAX, POINTS_MAX, TITLE_MAX, strip_required, validate_time_24h


router = APIRouter(prefix="/api/v1/chores", tags=["chores"])


# === Request/Response models ===

class CreateChoreRequest(CamelModel):
    title: str = Field(max_length=TITLE_MAX)
    points: int = Field(default=0, ge=0, le=POINTS_MAX)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX)
    icon: str | None = Field(default=None, max_length=32)
    priority: str = PRIORITY_NORMAL
    recurrence: str | None = None
    recur_days: list[str] | None = None
    recur_time: str | None = None
    due_date: date | None = None
    assignee_ids: list[int] | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return strip_required(v)

    @field_validator("recur_time")
    @classmethod
    def validate_recur_time(cls, v: str | None) -> str | None:
        return validate_time_24h(v) if v is not None else v


class UpdateChoreRequest(CamelModel):
    title: str | None = Field(default=None, max_length=TITLE_MAX)
    points: int | None = Field(default=None, ge=0, le=POINTS_MAX)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX)
    icon: str | None = Field(default=None, max_length=32)
    priority: str | None = None
    recurrence: str | None = None
    recur_days: list[str] | None = None
    recur_time: str | None = None
    due_date: date | None = None
    is_active: bool | None = None
    assignee_ids: list[int] | None = None

    @field_validator("recur_time")
    @classmethod
    def validate_recur_time(cls, v: str | None) -> str | None:
        return validate_time_24h(v) if v is not None else v


class CompleteChoreRequest(CamelModel):
    member_id: int | None = None


# === Endpoints ===

@router.get("")
def get_chores(
    all: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    """Today's chores with completion state; ?all=true for every active chore"""
    return {"chores": list_chores(db, include_all=all)}


@router.post("", status_code=201)
def create_chore(
    req: CreateChoreRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_CHORES_CREATE)),
):
    chore = CreateChoreUseCase(db).execute(
        title=req.title,
        points=req.points,
        description=req.description,
        icon=req.icon,
        priority=req.priority,
        recurrence=req.recurrence,
        recur_days=req.recur_days,
        recur_time=req.recur_time,
        due_date=req.due_date,
        assignee_ids=req.assignee_ids,
        actor=auth.actor,
    )
    return {"chore": get_chore_detail(db, chore.id)}


@router.get("/{chore_id}")
def get_chore(chore_id: int, db: Session = Depends(get_db)):
    return {"chore": get_chore_detail(db, chore_id)}


@router.put("/{chore_id}")
def update_chore(
    chore_id: int,
    req: UpdateChoreRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_CHORES_EDIT)),
):
    changes = provided_fields(req)
    assignee_ids = changes.pop("assignee_ids", None)
    UpdateChoreUseCase(db).execute(chore_id, changes, assignee_ids=assignee_ids, actor=auth.actor)
    return {"chore": get_chore_detail(db, chore_id)}


@router.delete("/{chore_id}")
def delete_chore(
    chore_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_CHORES_DELETE)),
):
    DeleteChoreUseCase(db).execute(chore_id, actor=auth.actor)
    return {"success": True}


@router.post("/{chore_id}/complete", status_code=201)
def complete_chore(
    chore_id: int,
    req: CompleteChoreRequest | None = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_CHORES_COMPLETE_OWN)),
):
    member_id = req.member_id if req and req.member_id is not None else auth.member_id
    if member_id is None:
        raise ValidationFailed("memberId is required")
    ensure_self_or_permission(auth, member_id, PERM_CHORES_COMPLETE_ANY)
    completion, points = CompleteChoreUseCase(db).execute(chore_id, member_id, actor=auth.actor)
    return {"completion": serialize_completion(completion), "pointsAwarded": points}


@router.delete("/{chore_id}/complete")
def undo_chore(
    chore_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_CHORES_COMPLETE_OWN)),
):
    """Undo today's completion; points come back off via a CHORE_UNDO entry"""
    completion = todays_completion(db, chore_id)
    if completion is None:
        raise NotFound("No completion found for today")
    ensure_self_or_permission(auth, completion.completed_by_id, PERM_CHORES_COMPLETE_ANY)
    reversed_points = UndoChoreCompletionUseCase(db).execute(chore_id, actor=auth.actor)
    return {"success": True, "pointsReversed": reversed_points}
