"""Daily routine schedule shown on the dashboard"""
from typing import Any

from sqlalchemy.orm import Session

from famboard.application.errors import NotFound, ValidationFailed
from famboard.domain.chore_schedule import validate_recur_days
from famboard.infrastructure.db.models import ScheduleItem
from famboard.utils.validation import TIME_24H

SCHEDULE_FIELDS = ["title", "time", "icon", "days", "is_active"]


class ScheduleValidationError(ValidationFailed):
    pass


def serialize_schedule_item(item: ScheduleItem) -> dict:
    return {
        "id": item.id,
        "title": item.title,
        "time": item.time,
        "icon": item.icon,
        "days": item.days,
        "isActive": item.is_active,
    }


def get_schedule_item_or_404(db: Session, item_id: int) -> ScheduleItem:
    item = db.query(ScheduleItem).filter(ScheduleItem.id == item_id).first()
    if item is None:
        raise NotFound("Schedule item not found")
    return item


def list_schedule(db: Session, active_only: bool = True) -> list[ScheduleItem]:
    query = db.query(ScheduleItem)
    if active_only:
        query = query.filter(ScheduleItem.is_active == True)  # noqa: E712
    return query.order_by(ScheduleItem.time.asc(), ScheduleItem.id.asc()).all()


def _validate(fields: dict[str, Any]) -> None:
    if "title" in fields:
        fields["title"] = (fields["title"] or "").strip()
        if not fields["title"]:
            raise ScheduleValidationError("Title is required")
    if "time" in fields and not TIME_24H.match(fields["time"] or ""):
        raise ScheduleValidationError("time must be HH:MM (24-hour)")
    if "days" in fields:
        try:
            fields["days"] = validate_recur_days(fields["days"])
        except ValueError as e:
            raise ScheduleValidationError(str(e))


class CreateScheduleItemUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, title: str, time: str, icon: str | None = None, days: list[str] | None = None) -> ScheduleItem:
        fields = {"title": title, "time": time, "icon": icon, "days": days}
        _validate(fields)
        item = ScheduleItem(is_active=True, **fields)
        self.db.add(item)
        self.db.commit()
        return item


class UpdateScheduleItemUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, item_id: int, changes: dict[str, Any]) -> ScheduleItem:
        item = get_schedule_item_or_404(self.db, item_id)
        unknown = set(changes) - set(SCHEDULE_FIELDS)
        if unknown:
            raise ScheduleValidationError(f"Unknown schedule fields: {', '.join(sorted(unknown))}")
        _validate(changes)
        for key, value in changes.items():
            setattr(item, key, value)
        self.db.commit()
        return item


class DeleteScheduleItemUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, item_id: int) -> None:
        item = get_schedule_item_or_404(self.db, item_id)
        self.db.delete(item)
        self.db.commit()
