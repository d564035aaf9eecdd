"""
Application error hierarchy

Use cases raise these; the app maps them to JSON responses
{"error": message, **extra} with `status_code`.
"""
from typing import Any


class DashboardError(ValueError):
    status_code = 400

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, **self.extra}


class ValidationFailed(DashboardError):
    status_code = 400


class AuthenticationRequired(DashboardError):
    status_code = 401


class PermissionDenied(DashboardError):
    status_code = 403


class NotFound(DashboardError):
    status_code = 404


class Conflict(DashboardError):
    status_code = 409


class UpstreamUnavailable(DashboardError):
    status_code = 502
