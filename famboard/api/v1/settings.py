"""
Household display settings endpoints
"""
from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from famboard.api.deps import AuthContext, get_db, get_household_settings, require_permission
from famboard.api.schemas import CamelModel, provided_fields
from famboard.application.settings import UpdateSettingsUseCase, serialize_settings
from famboard.domain.member import PERM_MANAGE_SETTINGS
from famboard.infrastructure.db.models import HouseholdSettings
from famboard.utils.validation import NAME_MAX


router = APIRouter(prefix="/api/v1/settings", tags=["settings"])


# === Request/Response models ===

class UpdateSettingsRequest(CamelModel):
    display_name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX)
    carousel_interval: int | None = Field(default=None, ge=5, le=3600)
    carousel_animation: str | None = Field(default=None, max_length=32)
    theme: str | None = Field(default=None, max_length=32)
    header_mode: str | None = Field(default=None, max_length=32)
    header_alternate_interval: int | None = Field(default=None, ge=5, le=3600)
    weather_lat: float | None = Field(default=None, ge=-90, le=90)
    weather_lon: float | None = Field(default=None, ge=-180, le=180)
    weather_city: str | None = Field(default=None, max_length=NAME_MAX)
    screensaver_enabled: bool | None = None
    screensaver_start_hour: int | None = Field(default=None, ge=0, le=23)
    screensaver_end_hour: int | None = Field(default=None, ge=0, le=23)
    screensaver_photo_path: str | None = Field(default=None, max_length=500)
    screensaver_interval: int | None = Field(default=None, ge=1, le=3600)


# === Endpoints ===

@router.get("")
def get_settings_view(row: HouseholdSettings = Depends(get_household_settings)):
    return {"settings": serialize_settings(row)}


@router.put("")
def update_settings(
    req: UpdateSettingsRequest,
    db: Session = Depends(get_db),
    row: HouseholdSettings = Depends(get_household_settings),
    auth: AuthContext = Depends(require_permission(PERM_MANAGE_SETTINGS)),
):
    """Partial update; fields not sent are left alone"""
    row = UpdateSettingsUseCase(db, row).execute(provided_fields(req), actor=auth.actor)
    return {"settings": serialize_settings(row)}
