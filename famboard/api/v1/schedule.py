"""
Daily schedule endpoints
"""
from fastapi import APIRouter, Depends, Query
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from famboard.api.deps import AuthContext, get_db, require_permission
from famboard.api.schemas import CamelModel, provided_fields
from famboard.application.schedule import (
    CreateScheduleItemUseCase, DeleteScheduleItemUseCase, UpdateScheduleItemUseCase,
    get_schedule_item_or_404, list_schedule, serialize_schedule_item,
)
from famboard.domain.member import PERM_SCHEDULE_CREATE, PERM_SCHEDULE_DELETE, PERM_SCHEDULE_EDIT
from famboard.utils.validation import TITLE_MAX, strip_required, validate_time_24h


router = APIRouter(prefix="/api/v1/schedule", tags=["schedule"])


# === Request/Response models ===

class CreateScheduleItemRequest(CamelModel):
    title: str = Field(max_length=TITLE_MAX)
    time: str
    icon: str | None = Field(default=None, max_length=32)
    days: list[str] | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return strip_required(v)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return validate_time_24h(v)


class UpdateScheduleItemRequest(CamelModel):
    title: str | None = Field(default=None, max_length=TITLE_MAX)
    time: str | None = None
    icon: str | None = Field(default=None, max_length=32)
    days: list[str] | None = None
    is_active: bool | None = None

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str | None) -> str | None:
        return validate_time_24h(v) if v is not None else v


# === Endpoints ===

@router.get("")
def get_schedule(
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    db: Session = Depends(get_db),
):
    """Items ordered by time of day"""
    items = list_schedule(db, active_only=not include_inactive)
    return {"items": [serialize_schedule_item(i) for i in items]}


@router.post("", status_code=201)
def create_schedule_item(
    req: CreateScheduleItemRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_SCHEDULE_CREATE)),
):
    item = CreateScheduleItemUseCase(db).execute(req.title, req.time, icon=req.icon, days=req.days)
    return {"item": serialize_schedule_item(item)}


@router.get("/{item_id}")
def get_schedule_item(item_id: int, db: Session = Depends(get_db)):
    return {"item": serialize_schedule_item(get_schedule_item_or_404(db, item_id))}


@router.put("/{item_id}")
def update_schedule_item(
    item_id: int,
    req: UpdateScheduleItemRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_SCHEDULE_EDIT)),
):
    item = UpdateScheduleItemUseCase(db).execute(item_id, provided_fields(req))
    return {"item": serialize_schedule_item(item)}


@router.delete("/{item_id}")
def delete_schedule_item(
    item_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_SCHEDULE_DELETE)),
):
    DeleteScheduleItemUseCase(db).execute(item_id)
    return {"success": True}
