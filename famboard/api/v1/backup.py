"""
Backup endpoints: download, stored snapshots, restore
"""
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import Field
from sqlalchemy.orm import Session

from famboard.api.deps import AuthContext, get_db, require_permission
from famboard.api.schemas import CamelModel
from famboard.application.backup import (
    CreateBackupUseCase, DeleteBackupUseCase, RestoreBackupUseCase, backup_filename,
    collect_backup_data, get_backup_or_404, list_backups, serialize_backup,
)
from famboard.domain.member import PERM_BACKUP_CREATE, PERM_BACKUP_DELETE, PERM_BACKUP_RESTORE
from famboard.utils.clock import utc_now
from famboard.utils.validation import DESCRIPTION_MAX, TITLE_MAX


router = APIRouter(prefix="/api/v1/backup", tags=["backup"])


# === Request/Response models ===

class CreateBackupRequest(CamelModel):
    name: str | None = Field(default=None, max_length=TITLE_MAX)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX)


def _download(data: dict, filename: str) -> JSONResponse:
    return JSONResponse(
        content=data,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# === Endpoints ===

@router.get("")
def get_backups(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_BACKUP_CREATE)),
):
    return {"backups": [serialize_backup(b) for b in list_backups(db)]}


@router.post("", status_code=201)
def create_backup(
    req: CreateBackupRequest | None = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_BACKUP_CREATE)),
):
    """Store a snapshot of the current data"""
    req = req or CreateBackupRequest()
    backup = CreateBackupUseCase(db).execute(req.name, req.description, actor=auth.actor)
    return {"success": True, "backup": serialize_backup(backup)}


@router.get("/export")
def export_backup(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_BACKUP_CREATE)),
):
    """Current data as a downloadable JSON file"""
    data = collect_backup_data(db)
    db.commit()
    return _download(data, backup_filename(utc_now().date()))


@router.post("/restore")
def restore_backup(
    data: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_BACKUP_RESTORE)),
):
    restored = RestoreBackupUseCase(db).execute(data, actor=auth.actor)
    return {
        "success": True,
        "message": "Backup restored successfully",
        "restored": restored,
        "backupVersion": data["version"],
        "backupDate": data["exportedAt"],
    }


@router.get("/{backup_id}")
def download_backup(
    backup_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_BACKUP_CREATE)),
):
    backup = get_backup_or_404(db, backup_id)
    return _download(backup.data, backup_filename(backup.created_at.date(), backup.name))


@router.delete("/{backup_id}")
def delete_backup(
    backup_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_BACKUP_DELETE)),
):
    DeleteBackupUseCase(db).execute(backup_id, actor=auth.actor)
    return {"success": True, "message": "Backup deleted successfully"}
