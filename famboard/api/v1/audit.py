"""
Audit log endpoints (parents only)
"""
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from famboard.api.deps import AuthContext, get_db, require_permission
from famboard.application.audit import PurgeAuditLogsUseCase, list_audit_logs, serialize_audit_log
from famboard.domain.audit import AUDIT_ACTIONS, ENTITY_TYPES
from famboard.domain.member import PERM_AUDIT_VIEW, PERM_MANAGE_SETTINGS
from famboard.infrastructure.auditlog.repository import AuditLogRepository


router = APIRouter(prefix="/api/v1/audit", tags=["audit"])


@router.get("")
def get_audit_logs(
    limit: int = 100,
    entity_type: str | None = Query(default=None, alias="entityType"),
    action: str | None = None,
    performed_by: str | None = Query(default=None, alias="performedBy"),
    since: datetime | None = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_AUDIT_VIEW)),
):
    """Newest first, with optional filters"""
    logs = list_audit_logs(
        db, limit=limit, entity_type=entity_type, action=action, performed_by=performed_by, since=since,
    )
    return {
        "logs": [serialize_audit_log(entry) for entry in logs],
        "actions": AUDIT_ACTIONS,
        "entityTypes": ENTITY_TYPES,
    }


@router.get("/history/{entity_type}/{entity_id}")
def get_entity_history(
    entity_type: str,
    entity_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_AUDIT_VIEW)),
):
    logs = AuditLogRepository(db).history(entity_type, entity_id)
    return {"logs": [serialize_audit_log(entry) for entry in logs]}


@router.delete("")
def purge_audit_logs(
    days_to_keep: int | None = Query(default=None, alias="daysToKeep"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_MANAGE_SETTINGS)),
):
    deleted = PurgeAuditLogsUseCase(db).execute(days_to_keep)
    return {"success": True, "deleted": deleted}
