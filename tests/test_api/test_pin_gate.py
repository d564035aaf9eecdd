"""
Route table of the PIN gate
"""
import pytest

from famboard.api.pin_gate import requires_pin_session


class TestRequiresPinSession:
    @pytest.mark.parametrize("method, path", [
        ("PUT", "/api/v1/settings"),
        ("DELETE", "/api/v1/audit"),
        ("GET", "/api/v1/audit"),
        ("POST", "/api/v1/chores"),
        ("PUT", "/api/v1/rewards/redemptions/4"),
        ("PUT", "/api/v1/auth/pin/change"),
        ("POST", "/api/v1/backup/restore"),
        ("POST", "/api/v1/tasks/import"),
    ])
    def test_protected(self, method, path):
        assert requires_pin_session(method, path) is True

    @pytest.mark.parametrize("method, path", [
        ("GET", "/api/v1/settings"),
        ("GET", "/api/v1/chores"),
        ("POST", "/api/v1/chores/12/complete"),
        ("DELETE", "/api/v1/chores/12/complete"),
        ("POST", "/api/v1/recipes/3/rate"),
        ("POST", "/api/v1/rewards/redeem"),
        ("POST", "/api/v1/auth/pin/verify"),
        ("GET", "/api/v1/member/2"),
        ("POST", "/api/v1/points/award"),
    ])
    def test_open(self, method, path):
        assert requires_pin_session(method, path) is False

    def test_prefix_match_needs_a_path_boundary(self):
        """Public routes match whole path segments only"""
        assert requires_pin_session("GET", "/api/v1/chores-archive") is True
        assert requires_pin_session("POST", "/api/v1/rewards/redeemed") is True
