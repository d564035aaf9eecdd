"""
Task (to-do) endpoints
"""
from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from famboard.api.deps import AuthContext, get_db, require_permission
from famboard.api.schemas import CamelModel, provided_fields
from famboard.application.errors import PermissionDenied
from famboard.application.task_import import ImportTasksUseCase
from famboard.application.tasks import (
    CreateTaskUseCase, DeleteTaskUseCase, UpdateTaskUseCase, list_tasks, serialize_task,
)
from famboard.domain.member import (
    PERM_TASKS_COMPLETE, PERM_TASKS_CREATE, PERM_TASKS_DELETE, PERM_TASKS_EDIT, has_permission,
)
from famboard.utils.validation import DESCRIPTION_MAX, TITLE_MAX, strip_required


router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


# === Request/Response models ===

class CreateTaskRequest(CamelModel):
    title: str = Field(max_length=TITLE_MAX)
    priority: str | None = None
    due_date: date | None = None
    start_date: date | None = None
    scheduled_date: date | None = None
    recurrence: str | None = Field(default=None, max_length=32)
    notes: str | None = Field(default=None, max_length=DESCRIPTION_MAX)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return strip_required(v)


class ImportTasksRequest(CamelModel):
    markdown: str = Field(max_length=200_000)
    save: bool = False
    source_file: str | None = Field(default=None, max_length=255)


class UpdateTaskRequest(CamelModel):
    title: str | None = Field(default=None, max_length=TITLE_MAX)
    priority: str | None = None
    due_date: date | None = None
    start_date: date | None = None
    scheduled_date: date | None = None
    recurrence: str | None = Field(default=None, max_length=32)
    notes: str | None = Field(default=None, max_length=DESCRIPTION_MAX)
    completed: bool | None = None


# === Endpoints ===

@router.get("")
def get_tasks(
    show_completed: bool = Query(default=False, alias="showCompleted"),
    db: Session = Depends(get_db),
):
    return {"tasks": [serialize_task(t) for t in list_tasks(db, show_completed=show_completed)]}


@router.post("", status_code=201)
def create_task(
    req: CreateTaskRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_TASKS_CREATE)),
):
    task = CreateTaskUseCase(db).execute(**req.model_dump(exclude_none=True))
    return {"task": serialize_task(task)}


@router.post("/import")
def import_tasks(
    req: ImportTasksRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_TASKS_CREATE)),
):
    """Obsidian Tasks markdown: preview by default, `save: true` creates the tasks"""
    parsed, imported = ImportTasksUseCase(db).execute(req.markdown, save=req.save, source_file=req.source_file)
    body = {"tasks": [t.to_dict() for t in parsed]}
    if req.save:
        body["imported"] = imported
    return body


@router.put("/{task_id}")
def update_task(
    task_id: int,
    req: UpdateTaskRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_TASKS_COMPLETE)),
):
    """Ticking a task off needs tasks:complete; any other change needs tasks:edit"""
    changes = provided_fields(req)
    if set(changes) - {"completed"} and not has_permission(auth.role, PERM_TASKS_EDIT):
        raise PermissionDenied("Permission denied", required=PERM_TASKS_EDIT)
    task = UpdateTaskUseCase(db).execute(task_id, changes)
    return {"task": serialize_task(task)}


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_TASKS_DELETE)),
):
    DeleteTaskUseCase(db).execute(task_id)
    return {"success": True}
