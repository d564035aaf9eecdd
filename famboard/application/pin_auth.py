"""
PIN authentication for the management surface

One shared household PIN, stored as a passlib hash on the household
settings row, plus server-side bearer sessions.
"""
import logging
import secrets
from datetime import datetime, timedelta

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from famboard.application.audit import Actor, record_audit
from famboard.application.errors import AuthenticationRequired, PermissionDenied, ValidationFailed
from famboard.config import get_settings
from famboard.domain.audit import (
    ACTION_CHANGE_PIN, ACTION_DISABLE_PIN, ACTION_ENABLE_PIN, ENTITY_SETTINGS,
)
from famboard.domain.pin_lockout import LockoutPolicy, LockoutState, Locked
from famboard.infrastructure.db.models import HouseholdSettings, PinSession
from famboard.utils.clock import utc_now
from famboard.utils.validation import is_valid_pin_format

logger = logging.getLogger(__name__)

pin_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

PIN_FORMAT_MESSAGE = "PIN must be 4-6 digits"


class PinValidationError(ValidationFailed):
    pass


class InvalidPinError(AuthenticationRequired):
    pass


class PinLockedError(PermissionDenied):
    pass


def hash_pin(pin: str) -> str:
    return pin_context.hash(pin)


def verify_pin(pin: str, pin_hash: str | None) -> bool:
    if not pin_hash:
        return False
    return pin_context.verify(pin, pin_hash)


def lockout_policy_from_settings() -> LockoutPolicy:
    settings = get_settings()
    return LockoutPolicy(
        max_failures=settings.PIN_MAX_FAILED_ATTEMPTS,
        duration=timedelta(minutes=settings.PIN_LOCKOUT_MINUTES),
    )


# === Sessions ===

def create_session(db: Session, now: datetime | None = None) -> PinSession:
    now = now or utc_now()
    hours = get_settings().PIN_SESSION_HOURS
    session = PinSession(
        token=secrets.token_hex(32),
        created_at=now,
        expires_at=now + timedelta(hours=hours),
    )
    db.add(session)
    db.flush()
    return session


def validate_session(db: Session, token: str | None, now: datetime | None = None) -> bool:
    """Lookup plus expiry check; an expired row is deleted on sight"""
    if not token:
        return False
    session = db.query(PinSession).filter(PinSession.token == token).first()
    if session is None:
        return False
    if session.expires_at <= (now or utc_now()):
        db.delete(session)
        db.commit()
        return False
    return True


def delete_session(db: Session, token: str | None) -> None:
    if token:
        db.query(PinSession).filter(PinSession.token == token).delete(synchronize_session=False)
        db.commit()


def delete_all_sessions(db: Session) -> int:
    return db.query(PinSession).delete(synchronize_session=False)


def cleanup_expired_sessions(db: Session, now: datetime | None = None) -> int:
    deleted = (
        db.query(PinSession)
        .filter(PinSession.expires_at <= (now or utc_now()))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


# === PIN flows ===

class PinService:
    """
    PIN setup / verify / change / disable against the household row

    Args:
        db: SQLAlchemy session
        settings_row: household settings, loaded by the caller
        policy: lockout policy (defaults from config)
        now: clock override for tests
    """

    def __init__(
        self,
        db: Session,
        settings_row: HouseholdSettings,
        policy: LockoutPolicy | None = None,
        now: datetime | None = None,
    ):
        self.db = db
        self.row = settings_row
        self.policy = policy or lockout_policy_from_settings()
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now or utc_now()

    # --- state ---

    def lockout_state(self) -> LockoutState:
        return self.policy.state_from(self.row.pin_failed_attempts, self.row.pin_locked_until, self.now)

    def _store_state(self, state: LockoutState) -> None:
        failures, locked_until = self.policy.to_columns(state)
        self.row.pin_failed_attempts = failures
        self.row.pin_locked_until = locked_until

    def is_configured(self) -> bool:
        return bool(self.row.pin_hash)

    def status(self) -> dict:
        state = self.lockout_state()
        return {
            "enabled": bool(self.row.pin_enabled),
            "configured": self.is_configured(),
            "locked": self.policy.is_locked(state, self.now),
            "lockoutRemaining": self.policy.remaining_seconds(state, self.now),
        }

    # --- flows ---

    def setup(self, pin: str, confirm_pin: str, actor: Actor | None = None) -> PinSession:
        if not is_valid_pin_format(pin):
            raise PinValidationError(PIN_FORMAT_MESSAGE)
        if pin != confirm_pin:
            raise PinValidationError("PINs do not match")
        if self.is_configured():
            raise PinValidationError("PIN already configured")

        self.row.pin_hash = hash_pin(pin)
        self.row.pin_enabled = True
        self._store_state(self.policy.reset())
        session = create_session(self.db, self.now)
        record_audit(
            self.db, action=ACTION_ENABLE_PIN, entity_type=ENTITY_SETTINGS,
            entity_id="pin", actor=actor, description="PIN configured",
        )
        self.db.commit()
        logger.info("PIN configured")
        return session

    def _check_pin(self, pin: str, message: str) -> None:
        """
        Compare `pin` under the lockout policy

        Wrong guesses count toward the lockout from every flow.

        Raises:
            PinLockedError (403): lockout window active, PIN not compared
            PinValidationError (400): no PIN configured
            InvalidPinError (401): wrong PIN, failure recorded
        """
        state = self.lockout_state()
        if self.policy.is_locked(state, self.now):
            raise PinLockedError(
                "Account is temporarily locked",
                locked=True,
                lockoutRemaining=self.policy.remaining_seconds(state, self.now),
            )
        if not self.is_configured():
            raise PinValidationError("PIN not configured")

        if verify_pin(pin, self.row.pin_hash):
            return

        state = self.policy.register_failure(state, self.now)
        self._store_state(state)
        self.db.commit()
        if isinstance(state, Locked):
            logger.warning("PIN locked until %s after repeated failures", state.until.isoformat())
            raise InvalidPinError(
                message,
                remainingAttempts=0,
                locked=True,
                lockoutRemaining=self.policy.remaining_seconds(state, self.now),
            )
        raise InvalidPinError(
            message,
            remainingAttempts=self.policy.remaining_attempts(state),
            locked=False,
        )

    def verify(self, pin: str) -> PinSession:
        """Check the PIN and open a session"""
        self._check_pin(pin, "Invalid PIN")

        self._store_state(self.policy.reset())
        session = create_session(self.db, self.now)
        self.db.commit()
        return session

    def change(self, current_pin: str, new_pin: str, confirm_pin: str, actor: Actor | None = None) -> None:
        if not is_valid_pin_format(new_pin):
            raise PinValidationError(PIN_FORMAT_MESSAGE)
        if new_pin != confirm_pin:
            raise PinValidationError("New PINs do not match")
        self._check_pin(current_pin, "Current PIN is incorrect")

        self.row.pin_hash = hash_pin(new_pin)
        self._store_state(self.policy.reset())
        record_audit(
            self.db, action=ACTION_CHANGE_PIN, entity_type=ENTITY_SETTINGS,
            entity_id="pin", actor=actor, description="PIN changed",
        )
        self.db.commit()
        logger.info("PIN changed")

    def disable(self, pin: str, actor: Actor | None = None) -> None:
        """Clear the PIN and lockout, and end every session"""
        self._check_pin(pin, "Invalid PIN")

        self.row.pin_hash = None
        self.row.pin_enabled = False
        self._store_state(self.policy.reset())
        removed = delete_all_sessions(self.db)
        record_audit(
            self.db, action=ACTION_DISABLE_PIN, entity_type=ENTITY_SETTINGS,
            entity_id="pin", actor=actor, description="PIN disabled",
        )
        self.db.commit()
        logger.info("PIN disabled, %d sessions removed", removed)
