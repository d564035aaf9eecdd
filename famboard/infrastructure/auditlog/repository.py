"""
Audit Log Repository

Append-only record of who changed what. Entries are never edited; old
ones are purged by retention.
"""
from datetime import datetime
from typing import Optional, Dict, Any, List
from sqlalchemy.orm import Session

from famboard.infrastructure.db.models import AuditLog
from famboard.utils.clock import utc_now


class AuditLogRepository:
    """
    Repository for the audit_logs table
    """

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        action: str,
        entity_type: str,
        entity_id: str | int,
        old_value: Optional[Dict[str, Any]] = None,
        new_value: Optional[Dict[str, Any]] = None,
        description: Optional[str] = None,
        performed_by: Optional[str | int] = None,
        performed_by_name: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> int:
        """
        Add an entry (flush only, the caller owns the transaction)

        Args:
            action: e.g. "AWARD_POINTS"
            entity_type: e.g. "POINTS"
            entity_id: id of the affected row
            old_value / new_value: JSON-serializable snapshots
            performed_by: member id, or "pin" for a PIN session without a member

        Returns:
            id of the new entry

        Example:
            >>> repo = AuditLogRepository(db)
            >>> repo.append(
            ...     action="AWARD_POINTS",
            ...     entity_type="POINTS",
            ...     entity_id=7,
            ...     new_value={"amount": 10},
            ... )
        """
        entry = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            old_value=old_value,
            new_value=new_value,
            description=description,
            performed_by=str(performed_by) if performed_by is not None else None,
            performed_by_name=performed_by_name,
            ip_address=ip_address,
            user_agent=(user_agent or "")[:500] or None,
            created_at=created_at or utc_now(),
        )

        self.db.add(entry)
        self.db.flush()

        return entry.id

    def list(
        self,
        limit: int = 100,
        entity_type: Optional[str] = None,
        action: Optional[str] = None,
        performed_by: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> List[AuditLog]:
        """
        Newest first, with optional filters
        """
        query = self.db.query(AuditLog)

        if entity_type:
            query = query.filter(AuditLog.entity_type == entity_type)
        if action:
            query = query.filter(AuditLog.action == action)
        if performed_by:
            query = query.filter(AuditLog.performed_by == str(performed_by))
        if since:
            query = query.filter(AuditLog.created_at >= since)

        return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()

    def history(self, entity_type: str, entity_id: str | int, limit: int = 50) -> List[AuditLog]:
        """All entries for one entity, newest first"""
        return (
            self.db.query(AuditLog)
            .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == str(entity_id))
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .limit(limit)
            .all()
        )

    def purge_older_than(self, cutoff: datetime) -> int:
        """Delete entries created before `cutoff`; returns number removed"""
        return (
            self.db.query(AuditLog)
            .filter(AuditLog.created_at < cutoff)
            .delete(synchronize_session=False)
        )
