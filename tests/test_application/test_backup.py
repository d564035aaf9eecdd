"""
Tests for backup export, stored snapshots and restore
"""
from datetime import date

import pytest

from famboard.application.backup import (
    BackupValidationError, CreateBackupUseCase, DeleteBackupUseCase, RestoreBackupUseCase,
    backup_filename, collect_backup_data, list_backups,
)
from famboard.application.chores import CompleteChoreUseCase, CreateChoreUseCase
from famboard.application.errors import NotFound
from famboard.application.pin_auth import PinService
from famboard.application.points import AdjustPointsUseCase, PointsLedger
from famboard.application.rewards import UpdatePointsSettingsUseCase
from famboard.application.settings import HouseholdSettingsStore, UpdateSettingsUseCase
from famboard.application.tasks import CreateTaskUseCase
from famboard.infrastructure.db.models import AuditLog, Chore, FamilyMember, Task


@pytest.fixture
def populated(db_session, parent, child, reward):
    """A little of everything: points, a completed chore, a task, custom settings"""
    AdjustPointsUseCase(db_session).execute(child.id, 12)
    chore = CreateChoreUseCase(db_session).execute(title="Feed the cat", points=3, assignee_ids=[child.id])
    CompleteChoreUseCase(db_session).execute(chore.id, child.id, today=date(2026, 3, 4))
    CreateTaskUseCase(db_session).execute("Renew passports", due_date=date(2026, 4, 30), priority="HIGH")
    row = HouseholdSettingsStore(db_session).load()
    UpdateSettingsUseCase(db_session, row).execute({"display_name": "The Parkers"})
    UpdatePointsSettingsUseCase(db_session).execute(min_cashout_points=250)
    return db_session


class TestExport:
    def test_document_shape(self, populated, child):
        data = collect_backup_data(populated)
        assert data["version"] == "1.0"
        assert data["exportedAt"]
        assert data["settings"]["display_name"] == "The Parkers"
        assert data["pointsSettings"]["min_cashout_points"] == 250
        assert [m["name"] for m in data["familyMembers"]] == ["Mom", "Kid"]
        assert data["tasks"][0]["due_date"] == "2026-04-30"
        assert sum(t["amount"] for t in data["pointTransactions"]) == 15

    def test_pin_is_not_exported(self, populated):
        PinService(populated, HouseholdSettingsStore(populated).load()).setup("2468", "2468")
        settings = collect_backup_data(populated)["settings"]
        assert "pin_hash" not in settings
        assert "pin_enabled" not in settings

    def test_filename(self):
        assert backup_filename(date(2026, 3, 1)) == "famboard-backup-2026-03-01.json"
        assert backup_filename(date(2026, 3, 1), 'Spring "clean"') == "famboard-backup-Spring-clean-2026-03-01.json"


class TestStoredBackups:
    def test_create_list_delete(self, populated):
        backup = CreateBackupUseCase(populated).execute("Before spring clean")
        assert backup.data["settings"]["display_name"] == "The Parkers"
        assert [b.id for b in list_backups(populated)] == [backup.id]

        DeleteBackupUseCase(populated).execute(backup.id)
        assert list_backups(populated) == []
        actions = [e.action for e in populated.query(AuditLog).order_by(AuditLog.id)]
        assert actions[-2:] == ["CREATE_BACKUP", "DELETE_BACKUP"]

    def test_default_name(self, db_session):
        backup = CreateBackupUseCase(db_session).execute()
        assert backup.name.startswith("Backup ")

    def test_delete_missing(self, db_session):
        with pytest.raises(NotFound, match="Backup not found"):
            DeleteBackupUseCase(db_session).execute(42)


class TestRestore:
    def test_round_trip_replaces_current_data(self, populated, child):
        child_id = child.id
        data = collect_backup_data(populated)

        # drift away from the snapshot
        AdjustPointsUseCase(populated).execute(child_id, 40)
        CreateTaskUseCase(populated).execute("Extra task")
        populated.add(FamilyMember(name="Guest", role="CHILD", color="#000000", avatar="G", avatar_type="initial"))
        populated.commit()

        restored = RestoreBackupUseCase(populated).execute(data)

        assert restored["familyMembers"] == 2
        assert restored["tasks"] == 1
        assert restored["settings"] == 1
        assert PointsLedger(populated).get_balance(child_id) == 15
        assert [t.title for t in populated.query(Task).all()] == ["Renew passports"]
        assert populated.query(FamilyMember).filter(FamilyMember.name == "Guest").first() is None
        assert populated.query(Chore).one().title == "Feed the cat"
        assert populated.query(AuditLog).filter(AuditLog.action == "RESTORE_BACKUP").count() == 1

    def test_restore_keeps_the_pin(self, populated):
        data = collect_backup_data(populated)
        PinService(populated, HouseholdSettingsStore(populated).load()).setup("2468", "2468")

        RestoreBackupUseCase(populated).execute(data)

        row = HouseholdSettingsStore(populated).load()
        assert row.pin_enabled is True
        assert row.pin_hash

    def test_missing_header(self, db_session):
        with pytest.raises(BackupValidationError, match="missing version or exportedAt"):
            RestoreBackupUseCase(db_session).execute({"tasks": []})

    def test_unsupported_version(self, db_session):
        with pytest.raises(BackupValidationError, match="Unsupported backup version"):
            RestoreBackupUseCase(db_session).execute({"version": "2.0", "exportedAt": "2026-03-01T00:00:00"})

    def test_bad_section_type(self, db_session):
        with pytest.raises(BackupValidationError, match="tasks must be a list"):
            RestoreBackupUseCase(db_session).execute(
                {"version": "1.0", "exportedAt": "2026-03-01T00:00:00", "tasks": {"title": "x"}},
            )

    def test_bad_value_rolls_everything_back(self, populated):
        data = collect_backup_data(populated)
        data["tasks"][0]["due_date"] = "next tuesday"

        with pytest.raises(BackupValidationError, match="Invalid value for tasks.due_date"):
            RestoreBackupUseCase(populated).execute(data)

        assert populated.query(FamilyMember).count() == 2
        assert populated.query(Task).count() == 1

    def test_conflicting_rows_roll_everything_back(self, populated):
        data = collect_backup_data(populated)
        data["familyMembers"].append(dict(data["familyMembers"][0]))  # duplicate primary key

        with pytest.raises(BackupValidationError, match="Backup data is inconsistent"):
            RestoreBackupUseCase(populated).execute(data)

        assert populated.query(FamilyMember).count() == 2
