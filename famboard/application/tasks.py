"""Household to-do list"""
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from famboard.application.errors import NotFound, ValidationFailed
from famboard.infrastructure.db.models import Task
from famboard.utils.clock import utc_now

TASK_PRIORITIES = ["LOW", "MEDIUM", "HIGH"]
TASK_FIELDS = [
    "title", "priority", "due_date", "start_date", "scheduled_date",
    "recurrence", "notes", "completed",
]


class TaskValidationError(ValidationFailed):
    pass


def get_task_or_404(db: Session, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if task is None:
        raise NotFound("Task not found")
    return task


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


def serialize_task(task: Task) -> dict:
    return {
        "id": task.id,
        "title": task.title,
        "priority": task.priority,
        "dueDate": _iso(task.due_date),
        "startDate": _iso(task.start_date),
        "scheduledDate": _iso(task.scheduled_date),
        "recurrence": task.recurrence,
        "notes": task.notes,
        "completed": task.completed,
        "completedAt": _iso(task.completed_at),
        "sourceFile": task.source_file,
    }


def list_tasks(db: Session, show_completed: bool = False) -> list[Task]:
    """Open tasks first, then by due date (undated last)"""
    query = db.query(Task)
    if not show_completed:
        query = query.filter(Task.completed == False)  # noqa: E712
    tasks = query.all()
    return sorted(tasks, key=lambda t: (t.completed, t.due_date is None, t.due_date or date.max, t.id))


def _validate(fields: dict[str, Any]) -> None:
    if "title" in fields:
        fields["title"] = (fields["title"] or "").strip()
        if not fields["title"]:
            raise TaskValidationError("Title is required")
    if fields.get("priority") is not None and fields["priority"] not in TASK_PRIORITIES:
        raise TaskValidationError(f"priority must be one of: {', '.join(TASK_PRIORITIES)}")


class CreateTaskUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, title: str, **fields: Any) -> Task:
        fields["title"] = title
        unknown = set(fields) - set(TASK_FIELDS)
        if unknown:
            raise TaskValidationError(f"Unknown task fields: {', '.join(sorted(unknown))}")
        _validate(fields)
        task = Task(**fields)
        if task.completed:
            task.completed_at = utc_now()
        else:
            task.completed = False
        self.db.add(task)
        self.db.commit()
        return task


class UpdateTaskUseCase:
    """Partial update; flipping `completed` stamps or clears completed_at"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, task_id: int, changes: dict[str, Any]) -> Task:
        task = get_task_or_404(self.db, task_id)
        unknown = set(changes) - set(TASK_FIELDS)
        if unknown:
            raise TaskValidationError(f"Unknown task fields: {', '.join(sorted(unknown))}")
        _validate(changes)

        if "completed" in changes and changes["completed"] != task.completed:
            task.completed_at = utc_now() if changes["completed"] else None
        for key, value in changes.items():
            setattr(task, key, value)
        self.db.commit()
        return task


class DeleteTaskUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, task_id: int) -> None:
        task = get_task_or_404(self.db, task_id)
        self.db.delete(task)
        self.db.commit()
