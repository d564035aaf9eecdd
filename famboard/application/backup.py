"""
Household backups: JSON export, stored snapshots and restore

A backup is one JSON document: `version`, `exportedAt`, the two settings
rows and one list per table. Restore replaces every backed-up table in a
single transaction; the PIN and its sessions, the audit trail and the
stored snapshots themselves are left alone.
"""
import logging
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Date, DateTime, Numeric, inspect, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import FlushError

from famboard.application.audit import Actor, record_audit
from famboard.application.errors import NotFound, ValidationFailed
from famboard.application.rewards import get_points_settings
from famboard.application.settings import HouseholdSettingsStore
from famboard.config import get_settings
from famboard.domain.audit import (
    ACTION_CREATE_BACKUP, ACTION_DELETE_BACKUP, ACTION_RESTORE_BACKUP, ENTITY_BACKUP,
)
from famboard.infrastructure.db.models import (
    Backup, Chore, ChoreAssignment, ChoreCompletion, FamilyMember, Habit, HabitLog, HouseholdSettings,
    MealPlanItem, PointsSettings, PointTransaction, Recipe, RecipeRating, Reward, RewardRedemption,
    ScheduleItem, ShoppingItem, Task,
)
from famboard.utils.clock import utc_now

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"

# inserted in this order on restore, cleared in reverse
BACKUP_TABLES = [
    ("familyMembers", FamilyMember),
    ("rewards", Reward),
    ("chores", Chore),
    ("choreAssignments", ChoreAssignment),
    ("choreCompletions", ChoreCompletion),
    ("habits", Habit),
    ("habitLogs", HabitLog),
    ("rewardRedemptions", RewardRedemption),
    ("pointTransactions", PointTransaction),
    ("scheduleItems", ScheduleItem),
    ("shoppingItems", ShoppingItem),
    ("tasks", Task),
    ("recipes", Recipe),
    ("recipeRatings", RecipeRating),
    ("mealPlanItems", MealPlanItem),
]

SETTINGS_EXCLUDED = {"key", "pin_enabled", "pin_hash", "pin_failed_attempts", "pin_locked_until", "updated_at"}
POINTS_SETTINGS_EXCLUDED = {"id"}


class BackupValidationError(ValidationFailed):
    pass


# --- row <-> JSON ---

def _encode(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def _decode(column, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(column.type, DateTime):
        return datetime.fromisoformat(value)
    if isinstance(column.type, Date):
        return date.fromisoformat(value)
    if isinstance(column.type, Numeric):
        return Decimal(str(value)) if column.type.asdecimal else float(value)
    return value


def dump_row(row, exclude: set[str] = frozenset()) -> dict:
    mapper = inspect(type(row))
    return {
        attr.key: _encode(getattr(row, attr.key))
        for attr in mapper.column_attrs
        if attr.key not in exclude
    }


def load_fields(model, data: dict, section: str, exclude: set[str] = frozenset()) -> dict:
    """Known columns of `model` from one backup record; unknown keys are ignored"""
    fields = {}
    for attr in inspect(model).column_attrs:
        if attr.key in exclude or attr.key not in data:
            continue
        try:
            fields[attr.key] = _decode(attr.columns[0], data[attr.key])
        except (TypeError, ValueError):
            raise BackupValidationError(f"Invalid value for {section}.{attr.key}")
    return fields


def collect_backup_data(db: Session) -> dict:
    data = {
        "version": BACKUP_VERSION,
        "exportedAt": utc_now().isoformat(),
        "settings": dump_row(HouseholdSettingsStore(db).load(), exclude=SETTINGS_EXCLUDED),
        "pointsSettings": dump_row(get_points_settings(db), exclude=POINTS_SETTINGS_EXCLUDED),
    }
    for section, model in BACKUP_TABLES:
        rows = db.query(model).order_by(inspect(model).primary_key[0]).all()
        data[section] = [dump_row(row) for row in rows]
    return data


def serialize_backup(backup: Backup) -> dict:
    return {
        "id": backup.id,
        "name": backup.name,
        "description": backup.description,
        "version": backup.version,
        "createdAt": backup.created_at.isoformat() if backup.created_at else None,
    }


def backup_filename(day: date, name: str | None = None) -> str:
    """
    Example:
        >>> backup_filename(date(2026, 3, 1), "Before spring clean")
        'famboard-backup-Before-spring-clean-2026-03-01.json'
    """
    if name:
        slug = re.sub(r"[^A-Za-z0-9_]+", "-", name).strip("-")
        if slug:
            return f"famboard-backup-{slug}-{day.isoformat()}.json"
    return f"famboard-backup-{day.isoformat()}.json"


def get_backup_or_404(db: Session, backup_id: int) -> Backup:
    backup = db.query(Backup).filter(Backup.id == backup_id).first()
    if backup is None:
        raise NotFound("Backup not found")
    return backup


def list_backups(db: Session) -> list[Backup]:
    return db.query(Backup).order_by(Backup.created_at.desc(), Backup.id.desc()).all()


# --- use cases ---

class CreateBackupUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, name: str | None = None, description: str | None = None, actor: Actor | None = None) -> Backup:
        now = utc_now()
        backup = Backup(
            name=(name or "").strip() or f"Backup {now.date().isoformat()}",
            description=description,
            version=BACKUP_VERSION,
            data=collect_backup_data(self.db),
            created_at=now,
        )
        self.db.add(backup)
        self.db.flush()
        record_audit(
            self.db, action=ACTION_CREATE_BACKUP, entity_type=ENTITY_BACKUP,
            entity_id=backup.id, actor=actor, description=backup.name,
        )
        self.db.commit()
        logger.info("Backup %s created", backup.id)
        return backup


class DeleteBackupUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, backup_id: int, actor: Actor | None = None) -> None:
        backup = get_backup_or_404(self.db, backup_id)
        record_audit(
            self.db, action=ACTION_DELETE_BACKUP, entity_type=ENTITY_BACKUP,
            entity_id=backup.id, actor=actor, description=backup.name,
        )
        self.db.delete(backup)
        self.db.commit()


class RestoreBackupUseCase:
    """
    Replace the household data with a backup document

    All or nothing: a malformed section, a bad value or rows that clash
    with each other roll the whole restore back.
    """

    def __init__(self, db: Session):
        self.db = db

    def _validate(self, data: Any) -> None:
        if not isinstance(data, dict) or not data.get("version") or not data.get("exportedAt"):
            raise BackupValidationError("Invalid backup format: missing version or exportedAt")
        if str(data["version"]).split(".")[0] != BACKUP_VERSION.split(".")[0]:
            raise BackupValidationError(f"Unsupported backup version: {data['version']}")
        for section, _ in BACKUP_TABLES:
            rows = data.get(section)
            if rows is not None and (
                not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows)
            ):
                raise BackupValidationError(f"Invalid backup format: {section} must be a list of objects")
        for section in ("settings", "pointsSettings"):
            if data.get(section) is not None and not isinstance(data[section], dict):
                raise BackupValidationError(f"Invalid backup format: {section} must be an object")

    def _reset_sequences(self) -> None:
        """PostgreSQL: move id sequences past the restored ids"""
        for _, model in BACKUP_TABLES:
            table = model.__tablename__
            self.db.execute(text(
                f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
                f"COALESCE((SELECT MAX(id) FROM {table}), 0) + 1, false)"
            ))

    def execute(self, data: Any, actor: Actor | None = None) -> dict[str, int]:
        """
        Returns:
            rows restored per section

        Raises:
            BackupValidationError (400)
        """
        self._validate(data)
        restored: dict[str, int] = {}

        try:
            for _, model in reversed(BACKUP_TABLES):
                self.db.query(model).delete()

            if data.get("settings"):
                row: HouseholdSettings = HouseholdSettingsStore(self.db).load()
                for key, value in load_fields(HouseholdSettings, data["settings"], "settings", SETTINGS_EXCLUDED).items():
                    setattr(row, key, value)
                row.updated_at = utc_now()
                restored["settings"] = 1

            if data.get("pointsSettings"):
                points_row: PointsSettings = get_points_settings(self.db)
                fields = load_fields(PointsSettings, data["pointsSettings"], "pointsSettings", POINTS_SETTINGS_EXCLUDED)
                for key, value in fields.items():
                    setattr(points_row, key, value)
                restored["pointsSettings"] = 1

            for section, model in BACKUP_TABLES:
                rows = data.get(section) or []
                for record in rows:
                    self.db.add(model(**load_fields(model, record, section)))
                self.db.flush()
                restored[section] = len(rows)

            if get_settings().is_postgres():
                self._reset_sequences()

            record_audit(
                self.db, action=ACTION_RESTORE_BACKUP, entity_type=ENTITY_BACKUP,
                entity_id="restore", actor=actor,
                new_value={"version": data["version"], "exportedAt": data["exportedAt"], "restored": restored},
            )
            self.db.commit()
        except (IntegrityError, FlushError) as e:
            self.db.rollback()
            logger.warning("Backup restore rejected: %s", getattr(e, "orig", e))
            raise BackupValidationError("Backup data is inconsistent")
        except BackupValidationError:
            self.db.rollback()
            raise

        logger.info("Backup from %s restored", data["exportedAt"])
        return restored
