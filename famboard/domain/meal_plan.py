"""
Four-week rotating meal plan
"""
from datetime import date

WEEK_NUMBERS = [1, 2, 3, 4]
DAYS_OF_WEEK = ["SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT"]
MEAL_TYPES = ["BREAKFAST", "LUNCH", "DINNER", "SNACK"]

DEFAULT_SHOPPING_WEEKS = "2,3,4"  # week 1 is usually already stocked


def day_of_week(day: date) -> str:
    # isoweekday(): Monday == 1 ... Sunday == 7
    return DAYS_OF_WEEK[day.isoweekday() % 7]


def current_week_number(day: date) -> int:
    """Week-of-year (weeks start Sunday) folded onto 1..4"""
    jan1 = date(day.year, 1, 1)
    jan1_offset = jan1.isoweekday() % 7  # Sunday == 0
    week_of_year = (day.timetuple().tm_yday - 1 + jan1_offset) // 7 + 1
    return (week_of_year - 1) % 4 + 1


def parse_weeks(param: str | None) -> list[int]:
    """
    "2,3,4" -> [2, 3, 4]; entries outside 1..4 or non-numeric are dropped

    Raises:
        ValueError: nothing usable left
    """
    raw = param if param else DEFAULT_SHOPPING_WEEKS
    weeks: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part.lstrip("-").isdigit():
            continue
        week = int(part)
        if week in WEEK_NUMBERS and week not in weeks:
            weeks.append(week)
    if not weeks:
        raise ValueError("Invalid weeks parameter")
    return weeks
