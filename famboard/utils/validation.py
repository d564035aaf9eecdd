"""
Validation utilities shared by request schemas
"""
import re
from typing import Any

NAME_MAX = 100
TITLE_MAX = 200
DESCRIPTION_MAX = 2000
POINTS_MIN = -100_000
POINTS_MAX = 100_000

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
TIME_24H = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
PIN_PATTERN = re.compile(r"^\d{4,6}$")


def is_valid_pin_format(pin: Any) -> bool:
    """
    PIN is 4-6 ASCII digits

    Example:
        >>> is_valid_pin_format("1234")
        True
        >>> is_valid_pin_format("12a4")
        False
    """
    return isinstance(pin, str) and bool(PIN_PATTERN.fullmatch(pin))


def validate_hex_color(value: str) -> str:
    if not HEX_COLOR.match(value):
        raise ValueError("must be a hex color like #1A2B3C")
    return value


def validate_time_24h(value: str) -> str:
    if not TIME_24H.match(value):
        raise ValueError("must be a 24-hour time like 07:30")
    return value


def strip_required(value: str) -> str:
    """Trim whitespace; an empty result is an error"""
    value = value.strip()
    if not value:
        raise ValueError("is required")
    return value


def field_errors_from_pydantic(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """
    Flatten pydantic/FastAPI validation errors into [{"field", "message"}]

    The leading location segment ("body", "query", "path") is dropped so
    clients see plain field names; nested fields are dot-joined.

    Example:
        >>> field_errors_from_pydantic([{"loc": ("body", "name"), "msg": "Field required"}])
        [{"field": "name", "message": "Field required"}]
    """
    details = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header", "cookie"):
            loc = loc[1:]
        message = str(err.get("msg", "Invalid value"))
        # pydantic prefixes ValueError messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": ".".join(loc) or "body", "message": message})
    return details
