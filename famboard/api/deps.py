"""
FastAPI dependencies (DB session, household settings, authentication)
"""
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from famboard.application.audit import Actor
from famboard.application.errors import AuthenticationRequired, PermissionDenied
from famboard.application.pin_auth import validate_session
from famboard.application.settings import HouseholdSettingsStore
from famboard.config import get_settings
from famboard.domain.member import ROLE_PARENT, has_permission
from famboard.infrastructure.db.models import FamilyMember, HouseholdSettings
from famboard.infrastructure.db.session import get_db as _get_db


# Re-export get_db for routers
get_db = _get_db


def get_household_settings(db: Session = Depends(get_db)) -> HouseholdSettings:
    """Settings row, loaded once per request"""
    return HouseholdSettingsStore(db).load()


@dataclass
class AuthContext:
    """
    Who is calling

    A valid PIN session cookie grants PARENT rights. Otherwise the member
    named by the X-Member-Id header (or member cookie) acts with their role.
    """
    member: FamilyMember | None
    is_pin_session: bool
    actor: Actor

    @property
    def role(self) -> str | None:
        if self.is_pin_session:
            return ROLE_PARENT
        return self.member.role if self.member else None

    @property
    def member_id(self) -> int | None:
        return self.member.id if self.member else None

    @property
    def is_authenticated(self) -> bool:
        return self.role is not None


def _member_id_from(request: Request) -> int | None:
    settings = get_settings()
    raw = request.headers.get(settings.MEMBER_HEADER_NAME) or request.cookies.get(settings.MEMBER_COOKIE_NAME)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def get_auth_context(request: Request, db: Session = Depends(get_db)) -> AuthContext:
    settings = get_settings()
    is_pin_session = validate_session(db, request.cookies.get(settings.PIN_COOKIE_NAME))

    member = None
    member_id = _member_id_from(request)
    if member_id is not None:
        member = db.query(FamilyMember).filter(FamilyMember.id == member_id).first()

    actor = Actor(
        member_id=member.id if member else None,
        name=member.name if member else ("PIN session" if is_pin_session else None),
        role=ROLE_PARENT if is_pin_session else (member.role if member else None),
        is_pin_session=is_pin_session,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return AuthContext(member=member, is_pin_session=is_pin_session, actor=actor)


def require_permission(permission: str):
    """
    Dependency factory: the caller's role must hold `permission`

    Usage:
        @router.post("/")
        def create(auth: AuthContext = Depends(require_permission(PERM_CHORES_CREATE))):
            ...
    """
    def dependency(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if not auth.is_authenticated:
            raise AuthenticationRequired("Authentication required")
        if not has_permission(auth.role, permission):
            raise PermissionDenied("Permission denied", required=permission)
        return auth

    return dependency


def require_authenticated(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if not auth.is_authenticated:
        raise AuthenticationRequired("Authentication required")
    return auth


def ensure_self_or_permission(auth: AuthContext, member_id: int, any_permission: str) -> None:
    """Children act only on their own records; `any_permission` lifts that"""
    if has_permission(auth.role, any_permission):
        return
    if auth.member_id != member_id:
        raise PermissionDenied("Permission denied", required=any_permission)


def require_pin_session(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """A member header is not enough: the caller must hold a live PIN session"""
    if not auth.is_pin_session:
        raise AuthenticationRequired("Not authenticated")
    return auth
