"""
Chore recurrence: which chores show up on a given day
"""
from datetime import date

RECURRENCE_DAILY = "DAILY"
RECURRENCE_WEEKLY = "WEEKLY"
RECURRENCE_CUSTOM = "CUSTOM"

RECURRENCES = [RECURRENCE_DAILY, RECURRENCE_WEEKLY, RECURRENCE_CUSTOM]

PRIORITY_LOW = "LOW"
PRIORITY_NORMAL = "NORMAL"
PRIORITY_HIGH = "HIGH"

PRIORITIES = [PRIORITY_LOW, PRIORITY_NORMAL, PRIORITY_HIGH]

# date.weekday(): Monday == 0
_DAY_CODES = ["MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN"]
DAY_CODES = ["SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT"]


def day_code(day: date) -> str:
    return _DAY_CODES[day.weekday()]


def is_due_on(
    recurrence: str | None,
    recur_days: list[str] | None,
    due_date: date | None,
    day: date,
) -> bool:
    """
    DAILY: every day.
    WEEKLY / CUSTOM: days listed in recur_days.
    No recurrence: one-time chore, due on due_date only.
    """
    if recurrence == RECURRENCE_DAILY:
        return True
    if recurrence in (RECURRENCE_WEEKLY, RECURRENCE_CUSTOM):
        return day_code(day) in [d.upper() for d in (recur_days or [])]
    return due_date is not None and due_date == day


def validate_recur_days(recur_days: list[str] | None) -> list[str] | None:
    if recur_days is None:
        return None
    normalized = [d.strip().upper() for d in recur_days]
    unknown = [d for d in normalized if d not in DAY_CODES]
    if unknown:
        raise ValueError(f"Unknown day codes: {', '.join(unknown)}")
    return normalized
