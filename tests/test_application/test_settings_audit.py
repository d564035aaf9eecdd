"""
Tests for household settings and the audit trail
"""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from famboard.application.audit import (
    Actor, AuditValidationError, PurgeAuditLogsUseCase, list_audit_logs, record_audit,
    serialize_audit_log,
)
from famboard.application.rewards import RewardValidationError, UpdatePointsSettingsUseCase
from famboard.application.settings import (
    HouseholdSettingsStore, SettingsValidationError, UpdateSettingsUseCase, serialize_settings,
)
from famboard.infrastructure.auditlog.repository import AuditLogRepository
from famboard.infrastructure.db.models import AuditLog

NOW = datetime(2026, 6, 1, 12, 0, 0)


class TestHouseholdSettings:
    def test_defaults_created_on_first_load(self, db_session):
        data = serialize_settings(HouseholdSettingsStore(db_session).load())
        assert data["displayName"] == "Family Dashboard"
        assert data["carouselInterval"] == 30
        assert data["pinEnabled"] is False
        assert "pinHash" not in data

    def test_partial_update_is_audited(self, db_session, parent):
        row = HouseholdSettingsStore(db_session).load()
        actor = Actor(member_id=parent.id, name=parent.name, role="PARENT")

        UpdateSettingsUseCase(db_session, row).execute(
            {"display_name": "The Smiths", "weather_city": "Portland"}, actor=actor,
        )

        assert row.display_name == "The Smiths"
        assert row.theme == "auto"
        entry = db_session.query(AuditLog).one()
        assert entry.action == "UPDATE_SETTINGS"
        assert entry.old_value == {"display_name": "Family Dashboard", "weather_city": None}

    def test_pin_columns_not_writable(self, db_session):
        row = HouseholdSettingsStore(db_session).load()
        with pytest.raises(SettingsValidationError, match="Unknown settings: pin_hash"):
            UpdateSettingsUseCase(db_session, row).execute({"pin_hash": "x"})

    def test_screensaver_hours(self, db_session):
        row = HouseholdSettingsStore(db_session).load()
        with pytest.raises(SettingsValidationError):
            UpdateSettingsUseCase(db_session, row).execute({"screensaver_start_hour": 24})


class TestAuditLog:
    def test_record_and_serialize(self, db_session):
        actor = Actor(is_pin_session=True, name="PIN session", ip_address="10.0.0.5", user_agent="kiosk")
        record_audit(db_session, "CREATE_REWARD", "REWARD", 3, actor=actor, new_value={"name": "Pizza"})
        db_session.commit()

        data = serialize_audit_log(db_session.query(AuditLog).one())
        assert data["performedBy"] == "pin"
        assert data["entityId"] == "3"
        assert data["actionDescription"] == "Reward created"
        assert data["ipAddress"] == "10.0.0.5"

    def test_filters(self, db_session):
        record_audit(db_session, "CREATE_REWARD", "REWARD", 1)
        record_audit(db_session, "AWARD_POINTS", "POINTS", 2, actor=Actor(member_id=7))
        db_session.commit()

        assert [e.action for e in list_audit_logs(db_session, entity_type="POINTS")] == ["AWARD_POINTS"]
        assert [e.entity_id for e in list_audit_logs(db_session, performed_by="7")] == ["2"]
        assert len(list_audit_logs(db_session, limit=1)) == 1

    def test_history(self, db_session):
        record_audit(db_session, "CREATE_CHORE", "CHORE", 4)
        record_audit(db_session, "UPDATE_CHORE", "CHORE", 4)
        record_audit(db_session, "UPDATE_CHORE", "CHORE", 5)
        db_session.commit()
        assert len(AuditLogRepository(db_session).history("CHORE", 4)) == 2


class TestPurge:
    def test_minimum_retention(self, db_session):
        with pytest.raises(AuditValidationError, match="at least 30 days"):
            PurgeAuditLogsUseCase(db_session).execute(days_to_keep=29, now=NOW)

    def test_purges_older_entries(self, db_session):
        repo = AuditLogRepository(db_session)
        repo.append("CREATE_REWARD", "REWARD", 1, created_at=NOW - timedelta(days=120))
        repo.append("CREATE_REWARD", "REWARD", 2, created_at=NOW - timedelta(days=10))
        db_session.commit()

        deleted = PurgeAuditLogsUseCase(db_session).execute(days_to_keep=90, now=NOW)

        assert deleted == 1
        assert [e.entity_id for e in db_session.query(AuditLog).all()] == ["2"]


class TestPointsSettings:
    def test_update_is_audited(self, db_session, parent):
        actor = Actor(member_id=parent.id, name=parent.name, role="PARENT")
        row = UpdatePointsSettingsUseCase(db_session).execute(min_cashout_points=250, actor=actor)

        assert row.min_cashout_points == 250
        entry = db_session.query(AuditLog).one()
        assert entry.action == "UPDATE_POINTS_SETTINGS"
        assert entry.performed_by == str(parent.id)
        assert entry.old_value["minCashoutPoints"] == 100
        assert entry.new_value["minCashoutPoints"] == 250

    def test_rejected_update_writes_nothing(self, db_session):
        with pytest.raises(RewardValidationError):
            UpdatePointsSettingsUseCase(db_session).execute(cash_conversion_rate=Decimal("0"))
        assert db_session.query(AuditLog).count() == 0
