"""
Time helpers

Timestamps are stored as naive UTC. "Today" is the household's local date.
"""
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from famboard.config import get_settings


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_today(now: datetime | None = None) -> date:
    """Calendar date in the configured TIMEZONE for a naive-UTC instant"""
    now = now or utc_now()
    tz = ZoneInfo(get_settings().TIMEZONE)
    return now.replace(tzinfo=timezone.utc).astimezone(tz).date()
