"""
Family member endpoints
"""
from datetime import date

from fastapi import APIRouter, Depends
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from famboard.api.deps import AuthContext, get_db, require_permission
from famboard.api.schemas import CamelModel, provided_fields
from famboard.application.family import (
    CreateMemberUseCase, DeleteMemberUseCase, RegisterCardUseCase, UnregisterCardUseCase,
    UpdateMemberUseCase, list_members, serialize_member,
)
from famboard.application.points import get_member_or_404
from famboard.domain.member import PERM_MANAGE_FAMILY, ROLE_CHILD
from famboard.utils.validation import NAME_MAX, strip_required, validate_hex_color


router = APIRouter(prefix="/api/v1/family", tags=["family"])


# === Request/Response models ===

class CreateMemberRequest(CamelModel):
    name: str = Field(max_length=NAME_MAX)
    color: str
    role: str = ROLE_CHILD
    avatar: str | None = Field(default=None, max_length=500)
    avatar_type: str = "initial"
    email: str | None = Field(default=None, max_length=200)
    birthday: date | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return strip_required(v)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        return validate_hex_color(v)


class UpdateMemberRequest(CamelModel):
    name: str | None = Field(default=None, max_length=NAME_MAX)
    color: str | None = None
    role: str | None = None
    avatar: str | None = Field(default=None, max_length=500)
    avatar_type: str | None = None
    email: str | None = Field(default=None, max_length=200)
    birthday: date | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        return strip_required(v) if v is not None else v

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str | None) -> str | None:
        return validate_hex_color(v) if v is not None else v


class RegisterCardRequest(CamelModel):
    card_id: str = Field(min_length=1, max_length=100)


# === Endpoints ===

@router.get("")
def get_family(db: Session = Depends(get_db)):
    """All members (public, dashboard)"""
    return {"members": [serialize_member(m) for m in list_members(db)]}


@router.post("", status_code=201)
def create_member(
    req: CreateMemberRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_MANAGE_FAMILY)),
):
    member = CreateMemberUseCase(db).execute(
        name=req.name,
        color=req.color,
        role=req.role,
        avatar=req.avatar,
        avatar_type=req.avatar_type,
        email=req.email,
        birthday=req.birthday,
        actor=auth.actor,
    )
    return {"member": serialize_member(member)}


@router.get("/{member_id}")
def get_member(member_id: int, db: Session = Depends(get_db)):
    return {"member": serialize_member(get_member_or_404(db, member_id))}


@router.put("/{member_id}")
def update_member(
    member_id: int,
    req: UpdateMemberRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_MANAGE_FAMILY)),
):
    member = UpdateMemberUseCase(db).execute(member_id, provided_fields(req), actor=auth.actor)
    return {"member": serialize_member(member)}


@router.delete("/{member_id}")
def delete_member(
    member_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_MANAGE_FAMILY)),
):
    DeleteMemberUseCase(db).execute(member_id, actor=auth.actor)
    return {"success": True}


@router.post("/{member_id}/card")
def register_card(
    member_id: int,
    req: RegisterCardRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_MANAGE_FAMILY)),
):
    member = RegisterCardUseCase(db).execute(member_id, req.card_id, actor=auth.actor)
    return {"member": serialize_member(member)}


@router.delete("/{member_id}/card")
def unregister_card(
    member_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(PERM_MANAGE_FAMILY)),
):
    member = UnregisterCardUseCase(db).execute(member_id, actor=auth.actor)
    return {"member": serialize_member(member)}
