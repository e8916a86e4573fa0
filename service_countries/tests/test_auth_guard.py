"""
Unit tests for AuthGuard.
"""

import pytest

from service_countries.app.domain.auth_guard import AuthGuard


class TestAuthGuard:
    """Test cases for AuthGuard."""

    @pytest.fixture
    def auth_guard(self):
        return AuthGuard("secrettoken123")

    def test_valid_bearer_token(self, auth_guard):
        assert auth_guard.validate("Bearer secrettoken123") is True

    @pytest.mark.parametrize("header", [
        None,
        "",
        "secrettoken123",
        "Token secrettoken123",
        "bearer secrettoken123",
        "Bearer ",
        "Bearer wrong",
        "Bearer secrettoken1234",
    ])
    def test_rejected_headers(self, auth_guard, header):
        """Missing, malformed and mismatched credentials all fail."""
        assert auth_guard.validate(header) is False

    def test_no_secret_configured_rejects_everything(self):
        auth_guard = AuthGuard(None)

        assert auth_guard.validate("Bearer anything") is False
        assert auth_guard.validate("Bearer ") is False
