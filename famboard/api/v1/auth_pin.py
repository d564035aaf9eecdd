"""
PIN authentication endpoints
"""
from fastapi import APIRouter, Depends, Request, Response
from pydantic import Field
from sqlalchemy.orm import Session

from famboard.api.deps import (
    AuthContext, get_auth_context, get_db, get_household_settings, require_pin_session,
)
from famboard.api.schemas import CamelModel
from famboard.application.pin_auth import PinService, delete_session, validate_session
from famboard.application.settings import HouseholdSettingsStore
from famboard.config import get_settings
from famboard.infrastructure.db.models import HouseholdSettings, PinSession


router = APIRouter(prefix="/api/v1/auth/pin", tags=["auth"])


# === Request/Response models ===

class PinSetupRequest(CamelModel):
    pin: str = Field(max_length=16)
    confirm_pin: str = Field(max_length=16)


class PinVerifyRequest(CamelModel):
    pin: str = Field(max_length=16)


class PinChangeRequest(CamelModel):
    current_pin: str = Field(max_length=16)
    new_pin: str = Field(max_length=16)
    confirm_pin: str = Field(max_length=16)


class PinDisableRequest(CamelModel):
    pin: str = Field(max_length=16)


# === Helpers ===

def _locked_settings(db: Session = Depends(get_db)) -> HouseholdSettings:
    """Household row under a row lock, so concurrent attempts count serially"""
    return HouseholdSettingsStore(db).load(for_update=True)


def _set_session_cookie(response: Response, session: PinSession) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.PIN_COOKIE_NAME,
        value=session.token,
        max_age=settings.PIN_SESSION_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.PIN_COOKIE_SECURE,
        path="/",
    )


def _clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=get_settings().PIN_COOKIE_NAME, path="/")


# === Endpoints ===

@router.get("/status")
def pin_status(
    db: Session = Depends(get_db),
    settings_row: HouseholdSettings = Depends(get_household_settings),
):
    """Whether a PIN is configured and whether it is locked out"""
    return PinService(db, settings_row).status()


@router.post("/setup")
def setup_pin(
    req: PinSetupRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings_row: HouseholdSettings = Depends(_locked_settings),
    auth: AuthContext = Depends(get_auth_context),
):
    session = PinService(db, settings_row).setup(req.pin, req.confirm_pin, actor=auth.actor)
    _set_session_cookie(response, session)
    return {"success": True}


@router.post("/verify")
def verify_pin(
    req: PinVerifyRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings_row: HouseholdSettings = Depends(_locked_settings),
):
    session = PinService(db, settings_row).verify(req.pin)
    _set_session_cookie(response, session)
    return {"success": True}


@router.get("/verify")
def check_session(request: Request, db: Session = Depends(get_db)):
    """Is the caller's PIN session cookie still valid"""
    token = request.cookies.get(get_settings().PIN_COOKIE_NAME)
    return {"authenticated": validate_session(db, token)}


@router.delete("/verify")
def logout(request: Request, response: Response, db: Session = Depends(get_db)):
    delete_session(db, request.cookies.get(get_settings().PIN_COOKIE_NAME))
    _clear_session_cookie(response)
    return {"success": True}


@router.put("/change")
def change_pin(
    req: PinChangeRequest,
    db: Session = Depends(get_db),
    settings_row: HouseholdSettings = Depends(_locked_settings),
    auth: AuthContext = Depends(require_pin_session),
):
    PinService(db, settings_row).change(req.current_pin, req.new_pin, req.confirm_pin, actor=auth.actor)
    return {"success": True}


@router.delete("/change")
def disable_pin(
    req: PinDisableRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings_row: HouseholdSettings = Depends(_locked_settings),
    auth: AuthContext = Depends(require_pin_session),
):
    """Turn PIN protection off; every session ends"""
    PinService(db, settings_row).disable(req.pin, actor=auth.actor)
    _clear_session_cookie(response)
    return {"success": True}
