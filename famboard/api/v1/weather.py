"""
Current weather for the configured household location
"""
from fastapi import APIRouter, Depends

from famboard.api.deps import get_household_settings
from famboard.application.weather import fetch_weather
from famboard.infrastructure.db.models import HouseholdSettings


router = APIRouter(prefix="/api/v1/weather", tags=["weather"])


@router.get("")
def get_weather(row: HouseholdSettings = Depends(get_household_settings)):
    return fetch_weather(row)
