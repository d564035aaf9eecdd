"""Audit trail: recording, listing and retention"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from famboard.application.errors import ValidationFailed
from famboard.config import get_settings
from famboard.domain.audit import describe_action
from famboard.infrastructure.auditlog.repository import AuditLogRepository
from famboard.infrastructure.db.models import AuditLog
from famboard.utils.clock import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Who is performing a request, as far as the API could tell"""
    member_id: int | None = None
    name: str | None = None
    role: str | None = None
    is_pin_session: bool = False
    ip_address: str | None = None
    user_agent: str | None = None

    @property
    def performed_by(self) -> str | None:
        if self.member_id is not None:
            return str(self.member_id)
        if self.is_pin_session:
            return "pin"
        return None


SYSTEM_ACTOR = Actor()


class AuditValidationError(ValidationFailed):
    pass


def record_audit(
    db: Session,
    action: str,
    entity_type: str,
    entity_id: Any,
    actor: Actor | None = None,
    old_value: dict | None = None,
    new_value: dict | None = None,
    description: str | None = None,
) -> None:
    """
    Write an audit entry inside a SAVEPOINT of the caller's transaction

    A failure here is logged and rolled back to the savepoint; the
    business operation carries on.
    """
    actor = actor or SYSTEM_ACTOR
    try:
        with db.begin_nested():
            AuditLogRepository(db).append(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                old_value=old_value,
                new_value=new_value,
                description=description,
                performed_by=actor.performed_by,
                performed_by_name=actor.name,
                ip_address=actor.ip_address,
                user_agent=actor.user_agent,
            )
    except SQLAlchemyError:
        logger.exception("Failed to write audit log entry %s %s/%s", action, entity_type, entity_id)


def serialize_audit_log(entry: AuditLog) -> dict:
    return {
        "id": entry.id,
        "action": entry.action,
        "actionDescription": describe_action(entry.action),
        "entityType": entry.entity_type,
        "entityId": entry.entity_id,
        "oldValue": entry.old_value,
        "newValue": entry.new_value,
        "description": entry.description,
        "performedBy": entry.performed_by,
        "performedByName": entry.performed_by_name,
        "ipAddress": entry.ip_address,
        "userAgent": entry.user_agent,
        "createdAt": entry.created_at.isoformat() if entry.created_at else None,
    }


def list_audit_logs(
    db: Session,
    limit: int = 100,
    entity_type: str | None = None,
    action: str | None = None,
    performed_by: str | None = None,
    since: datetime | None = None,
) -> list[AuditLog]:
    """Newest first; limit is clamped to 1..AUDIT_MAX_LIST_LIMIT"""
    max_limit = get_settings().AUDIT_MAX_LIST_LIMIT
    limit = max(1, min(limit, max_limit))
    return AuditLogRepository(db).list(
        limit=limit,
        entity_type=entity_type,
        action=action,
        performed_by=performed_by,
        since=since,
    )


class PurgeAuditLogsUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, days_to_keep: int | None = None, now: datetime | None = None) -> int:
        settings = get_settings()
        if days_to_keep is None:
            days_to_keep = settings.AUDIT_DEFAULT_RETENTION_DAYS
        if days_to_keep < settings.AUDIT_MIN_RETENTION_DAYS:
            raise AuditValidationError(
                f"Must keep at least {settings.AUDIT_MIN_RETENTION_DAYS} days of audit logs"
            )

        cutoff = (now or utc_now()) - timedelta(days=days_to_keep)
        deleted = AuditLogRepository(self.db).purge_older_than(cutoff)
        self.db.commit()
        logger.info("Purged %d audit log entries older than %s", deleted, cutoff.isoformat())
        return deleted
