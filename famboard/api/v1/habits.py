"""
Habit endpoints
"""
from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from famboard.api.deps import AuthContext, ensure_self_or_permission, get_db, require_permission
from famboard.api.schemas import CamelModel, provided_fields
from famboard.application.habits import (
    CreateHabitUseCase, DeleteHabitUseCase, LogHabitUseCase, UndoHabitLogUseCase, UpdateHabitUseCase,
    list_habits, serialize_habit, serialize_habit_log,
)
from famboard.domain.member import (
    PERM_HABITS_CREATE, PERM_HABITS_DELETE, PERM_HABITS_EDIT, PERM_HABITS_LOG_ANY, PERM_HABITS_LOG_OWN,
)
from famboard.utils.validation import NAME_MAX, POINTS_MAX, strip_required


router = APIRouter(prefix="/api/v1/habits", tags=["habits"])


# === Request/Response models ===

class CreateHabitRequest(CamelModel):
    name: str = Field(max_length=NAME_MAX)
    icon: str | None = Field(default=None, max_length=32)
    points: int = Field(default=1, ge=0, le=POINTS_MAX)
    frequency: str = "DAILY"

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return strip_required(v)


class UpdateHabitRequest(CamelModel):
    name: str | None = Field(default=None, max_length=NAME_MAX)
    icon: str | None = Field(default=None, max_length=32)
    points: int | None = Field(default=None, ge=0, le=POINTS_MAX)
    frequency: str | None = None
    is_active: bool | None = None


class HabitLogRequest(CamelModel):
    habit_id: int
    member_id: int
    log_date: date | None = Field(default=None, alias="date")


# === Endpoints ===

@router.get("")
def get_habits(
    on_date: date | None = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
):
    """Active habits with the logs for a day (default today)"""
    return {"habits": list_habits(db, on_date)}


@router.post("", status_code=201)
def create_habit(
    req: CreateHabitRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_HABITS_CREATE)),
):
    habit = CreateHabitUseCase(db).execute(req.name, icon=req.icon, points=req.points, frequency=req.frequency)
    return {"habit": serialize_habit(habit)}


@router.post("/log", status_code=201)
def log_habit(
    req: HabitLogRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_HABITS_LOG_OWN)),
):
    ensure_self_or_permission(auth, req.member_id, PERM_HABITS_LOG_ANY)
    log = LogHabitUseCase(db).execute(req.habit_id, req.member_id, on_date=req.log_date, actor=auth.actor)
    return {"log": serialize_habit_log(log)}


@router.delete("/log")
def undo_habit_log(
    habit_id: int = Query(alias="habitId"),
    member_id: int = Query(alias="memberId"),
    on_date: date | None = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_HABITS_LOG_OWN)),
):
    ensure_self_or_permission(auth, member_id, PERM_HABITS_LOG_ANY)
    reversed_points = UndoHabitLogUseCase(db).execute(habit_id, member_id, on_date=on_date, actor=auth.actor)
    return {"success": True, "pointsReversed": reversed_points}


@router.put("/{habit_id}")
def update_habit(
    habit_id: int,
    req: UpdateHabitRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_HABITS_EDIT)),
):
    habit = UpdateHabitUseCase(db).execute(habit_id, provided_fields(req))
    return {"habit": serialize_habit(habit)}


@router.delete("/{habit_id}")
def delete_habit(
    habit_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_HABITS_DELETE)),
):
    DeleteHabitUseCase(db).execute(habit_id)
    return {"success": True}
