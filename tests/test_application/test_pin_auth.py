"""
Tests for PIN setup, verification, lockout and sessions
"""
from datetime import datetime, timedelta

import pytest

from famboard.application.pin_auth import (
    InvalidPinError, PinLockedError, PinService, PinValidationError, cleanup_expired_sessions,
    validate_session,
)
from famboard.application.settings import HouseholdSettingsStore
from famboard.domain.pin_lockout import LockoutPolicy
from famboard.infrastructure.db.models import PinSession

NOW = datetime(2026, 3, 1, 12, 0, 0)
POLICY = LockoutPolicy(max_failures=5, duration=timedelta(minutes=15))


def service(db, now=NOW) -> PinService:
    return PinService(db, HouseholdSettingsStore(db).load(), policy=POLICY, now=now)


@pytest.fixture
def configured(db_session):
    service(db_session).setup("1234", "1234")
    return db_session


class TestSetup:
    def test_setup_enables_pin_and_opens_session(self, db_session):
        session = service(db_session).setup("1234", "1234")

        row = HouseholdSettingsStore(db_session).load()
        assert row.pin_enabled is True
        assert row.pin_hash and row.pin_hash != "1234"
        assert validate_session(db_session, session.token, now=NOW)

    def test_mismatch(self, db_session):
        with pytest.raises(PinValidationError, match="PINs do not match"):
            service(db_session).setup("1234", "4321")

    @pytest.mark.parametrize("pin", ["123", "1234567", "12a4", ""])
    def test_format(self, db_session, pin):
        with pytest.raises(PinValidationError, match="PIN must be 4-6 digits"):
            service(db_session).setup(pin, pin)

    def test_already_configured(self, configured):
        with pytest.raises(PinValidationError, match="PIN already configured"):
            service(configured).setup("5678", "5678")


class TestVerify:
    def test_correct_pin(self, configured):
        session = service(configured).verify("1234")
        assert session.expires_at > NOW

    def test_wrong_pin_counts_down(self, configured):
        with pytest.raises(InvalidPinError) as exc:
            service(configured).verify("0000")
        assert exc.value.status_code == 401
        assert exc.value.extra == {"remainingAttempts": 4, "locked": False}

    def test_five_failures_lock(self, configured):
        for _ in range(4):
            with pytest.raises(InvalidPinError):
                service(configured).verify("0000")
        with pytest.raises(InvalidPinError) as exc:
            service(configured).verify("0000")
        assert exc.value.extra["locked"] is True
        assert exc.value.extra["lockoutRemaining"] == 15 * 60

        # even the right PIN is refused while locked
        with pytest.raises(PinLockedError) as exc:
            service(configured, NOW + timedelta(minutes=5)).verify("1234")
        assert exc.value.status_code == 403
        assert exc.value.extra["lockoutRemaining"] == 10 * 60

    def test_lock_window_is_fixed(self, configured):
        for _ in range(5):
            with pytest.raises(InvalidPinError):
                service(configured).verify("0000")
        with pytest.raises(PinLockedError):
            service(configured, NOW + timedelta(minutes=14)).verify("0000")

        # expires 15 minutes after the fifth failure, not after the last attempt
        session = service(configured, NOW + timedelta(minutes=15)).verify("1234")
        assert session is not None

    def test_success_resets_counter(self, configured):
        with pytest.raises(InvalidPinError):
            service(configured).verify("0000")
        service(configured).verify("1234")
        assert HouseholdSettingsStore(configured).load().pin_failed_attempts == 0

    def test_not_configured(self, db_session):
        with pytest.raises(PinValidationError, match="PIN not configured"):
            service(db_session).verify("1234")

    def test_status(self, configured):
        status = service(configured).status()
        assert status == {"enabled": True, "configured": True, "locked": False, "lockoutRemaining": 0}


class TestChangeAndDisable:
    def test_change(self, configured):
        service(configured).change("1234", "5678", "5678")
        service(configured).verify("5678")

    def test_change_wrong_current(self, configured):
        with pytest.raises(InvalidPinError, match="Current PIN is incorrect"):
            service(configured).change("0000", "5678", "5678")

    def test_change_mismatch(self, configured):
        with pytest.raises(PinValidationError, match="New PINs do not match"):
            service(configured).change("1234", "5678", "8765")

    def test_disable_ends_sessions(self, configured):
        token = service(configured).verify("1234").token
        service(configured).disable("1234")

        row = HouseholdSettingsStore(configured).load()
        assert row.pin_enabled is False
        assert row.pin_hash is None
        assert not validate_session(configured, token, now=NOW)

    def test_wrong_current_pin_counts_toward_lockout(self, configured):
        for _ in range(POLICY.max_failures):
            with pytest.raises(InvalidPinError):
                service(configured).change("0000", "5678", "5678")

        assert service(configured).status()["locked"] is True
        with pytest.raises(PinLockedError):
            service(configured).verify("1234")
        with pytest.raises(PinLockedError):
            service(configured).change("1234", "5678", "5678")

    def test_wrong_pin_on_disable_counts_toward_lockout(self, configured):
        with pytest.raises(InvalidPinError) as exc_info:
            service(configured).disable("9999")
        assert exc_info.value.extra["remainingAttempts"] == POLICY.max_failures - 1
        assert HouseholdSettingsStore(configured).load().pin_enabled is True


class TestSessions:
    def test_expired_session_is_rejected_and_removed(self, configured):
        token = service(configured).verify("1234").token
        later = NOW + timedelta(hours=25)
        assert not validate_session(configured, token, now=later)
        assert configured.query(PinSession).filter(PinSession.token == token).first() is None

    def test_cleanup(self, configured):
        service(configured).verify("1234")
        assert cleanup_expired_sessions(configured, now=NOW + timedelta(hours=25)) == 2

    def test_missing_token(self, db_session):
        assert not validate_session(db_session, None)
        assert not validate_session(db_session, "nope")
