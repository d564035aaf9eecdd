"""
Route-level PIN gate for the management API

Writes to the household's management resources need a valid PIN session
cookie, whoever the X-Member-Id header names. The tables are checked in
order: public routes and member-portal actions, then public reads (GET
only), then the protected prefixes. Anything unlisted falls through to the
per-endpoint permission checks.
"""
import re

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from famboard.application.errors import AuthenticationRequired
from famboard.application.pin_auth import validate_session
from famboard.config import get_settings
from famboard.infrastructure.db.session import get_db

API = "/api/v1"

PIN_PROTECTED_PREFIXES = [
    f"{API}/settings",
    f"{API}/family",
    f"{API}/chores",
    f"{API}/rewards",
    f"{API}/habits",
    f"{API}/schedule",
    f"{API}/shopping",
    f"{API}/tasks",
    f"{API}/backup",
    f"{API}/auth/pin/change",
    f"{API}/audit",
    f"{API}/recipes",
    f"{API}/meal-plan",
]

PUBLIC_ROUTES = [
    f"{API}/member",             # member portal
    f"{API}/weather",
    f"{API}/auth/pin/status",
    f"{API}/auth/pin/verify",
    f"{API}/auth/pin/setup",
    f"{API}/points/balance",
    f"{API}/points/adjust",      # NFC point-of-sale
    f"{API}/rewards/redeem",
    f"{API}/meal-plan/today",
]

# member portal actions below otherwise protected prefixes
PUBLIC_PATTERNS = [
    re.compile(rf"^{API}/chores/\d+/complete$"),
    re.compile(rf"^{API}/recipes/\d+/rate$"),
]

PUBLIC_READ_ROUTES = [
    f"{API}/family",
    f"{API}/shopping",
    f"{API}/tasks",
    f"{API}/habits",
    f"{API}/schedule",
    f"{API}/rewards",
    f"{API}/settings",
    f"{API}/chores",
    f"{API}/recipes",
    f"{API}/meal-plan",
]


def _matches(path: str, route: str) -> bool:
    return path == route or path.startswith(route + "/")


def requires_pin_session(method: str, path: str) -> bool:
    """
    Whether `method path` sits behind the PIN

    Example:
        >>> requires_pin_session("PUT", "/api/v1/settings")
        True
        >>> requires_pin_session("GET", "/api/v1/settings")
        False
    """
    if any(_matches(path, route) for route in PUBLIC_ROUTES):
        return False
    if any(pattern.match(path) for pattern in PUBLIC_PATTERNS):
        return False
    if method == "GET" and any(_matches(path, route) for route in PUBLIC_READ_ROUTES):
        return False
    return any(path.startswith(prefix) for prefix in PIN_PROTECTED_PREFIXES)


def pin_gate(request: Request, db: Session = Depends(get_db)) -> None:
    """Router dependency: 401 on a protected route without a live PIN session"""
    if not requires_pin_session(request.method, request.url.path):
        return
    token = request.cookies.get(get_settings().PIN_COOKIE_NAME)
    if not validate_session(db, token):
        raise AuthenticationRequired("PIN authentication required")
