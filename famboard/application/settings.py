"""
Household settings

The settings row is loaded once per request by HouseholdSettingsStore and
handed to whoever needs it (PIN service, weather, settings endpoints).
Mutations go through the same object and are committed together.
"""
import logging
from typing import Any

from sqlalchemy.orm import Session

from famboard.application.audit import Actor, record_audit
from famboard.application.errors import ValidationFailed
from famboard.config import get_settings
from famboard.domain.audit import ACTION_UPDATE_SETTINGS, ENTITY_SETTINGS
from famboard.infrastructure.db.models import HouseholdSettings
from famboard.utils.clock import utc_now

logger = logging.getLogger(__name__)

HOUSEHOLD_SETTINGS_KEY = "household"

# Fields a settings update may touch (PIN columns are owned by pin_auth)
DISPLAY_FIELDS = [
    "display_name",
    "carousel_interval",
    "carousel_animation",
    "theme",
    "header_mode",
    "header_alternate_interval",
    "weather_lat",
    "weather_lon",
    "weather_city",
    "screensaver_enabled",
    "screensaver_start_hour",
    "screensaver_end_hour",
    "screensaver_photo_path",
    "screensaver_interval",
]

_DEFAULTS: dict[str, Any] = {
    "display_name": "Family Dashboard",
    "carousel_interval": 30,
    "carousel_animation": "slide",
    "theme": "auto",
    "header_mode": "clock",
    "header_alternate_interval": 30,
    "screensaver_enabled": False,
    "screensaver_start_hour": 18,
    "screensaver_end_hour": 23,
    "screensaver_interval": 15,
    "pin_enabled": False,
    "pin_failed_attempts": 0,
}


class SettingsValidationError(ValidationFailed):
    pass


class HouseholdSettingsStore:
    def __init__(self, db: Session):
        self.db = db

    def load(self, for_update: bool = False) -> HouseholdSettings:
        """
        Fetch the household row, creating it with defaults on first use

        for_update takes a row lock on backends that support it (PIN
        flows use it so concurrent failed attempts are counted serially).
        """
        query = self.db.query(HouseholdSettings).filter(HouseholdSettings.key == HOUSEHOLD_SETTINGS_KEY)
        if for_update and get_settings().is_postgres():
            query = query.with_for_update()
        row = query.first()
        if row is None:
            row = HouseholdSettings(key=HOUSEHOLD_SETTINGS_KEY, **_DEFAULTS)
            self.db.add(row)
            self.db.flush()
        return row

    def save(self, row: HouseholdSettings) -> HouseholdSettings:
        row.updated_at = utc_now()
        self.db.commit()
        return row


def serialize_settings(row: HouseholdSettings) -> dict:
    """Public view; PIN hash and lockout counters never leave the server"""
    return {
        "displayName": row.display_name,
        "carouselInterval": row.carousel_interval,
        "carouselAnimation": row.carousel_animation,
        "theme": row.theme,
        "headerMode": row.header_mode,
        "headerAlternateInterval": row.header_alternate_interval,
        "weatherLat": row.weather_lat,
        "weatherLon": row.weather_lon,
        "weatherCity": row.weather_city,
        "screensaverEnabled": row.screensaver_enabled,
        "screensaverStartHour": row.screensaver_start_hour,
        "screensaverEndHour": row.screensaver_end_hour,
        "screensaverPhotoPath": row.screensaver_photo_path,
        "screensaverInterval": row.screensaver_interval,
        "pinEnabled": row.pin_enabled,
    }


class UpdateSettingsUseCase:
    """Partial update: only the keys present in `changes` are written"""

    def __init__(self, db: Session, settings_row: HouseholdSettings):
        self.db = db
        self.row = settings_row

    def execute(self, changes: dict[str, Any], actor: Actor | None = None) -> HouseholdSettings:
        unknown = set(changes) - set(DISPLAY_FIELDS)
        if unknown:
            raise SettingsValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        start = changes.get("screensaver_start_hour", self.row.screensaver_start_hour)
        end = changes.get("screensaver_end_hour", self.row.screensaver_end_hour)
        for hour in (start, end):
            if hour is not None and not 0 <= hour <= 23:
                raise SettingsValidationError("Screensaver hours must be between 0 and 23")

        old_value = {k: getattr(self.row, k) for k in changes}
        for key, value in changes.items():
            setattr(self.row, key, value)

        record_audit(
            self.db,
            action=ACTION_UPDATE_SETTINGS,
            entity_type=ENTITY_SETTINGS,
            entity_id=HOUSEHOLD_SETTINGS_KEY,
            actor=actor,
            old_value=old_value,
            new_value=dict(changes),
        )
        HouseholdSettingsStore(self.db).save(self.row)
        logger.info("Household settings updated: %s", ", ".join(sorted(changes)))
        return self.row
