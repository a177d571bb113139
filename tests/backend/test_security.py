"""
Security and Error Handling Tests for Hackathon Registration.

Tests for:
- Security headers
- Rate limit response
- Error envelope mapping
"""

import json
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from hackreg.core.exceptions import (
    AppError,
    ConflictError,
    NotFoundError,
    ValidationError,
    conflict_from_integrity_error,
    unhandled_exception_handler,
)
from hackreg.middleware.security import limiter, rate_limit_exceeded_handler


class TestSecurityHeaders:
    """Headers added to every response."""

    async def test_headers_present(self, client):
        response = await client.get("/health")

        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"
        assert "max-age=" in response.headers["strict-transport-security"]

    async def test_headers_on_error_responses(self, client):
        response = await client.get("/nowhere")
        assert response.headers["x-content-type-options"] == "nosniff"

    async def test_cors_preflight(self, client):
        response = await client.options(
            "/teams",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


class TestRateLimiting:
    """Tests for the slowapi limiter configuration."""

    def test_limiter_disabled_in_tests(self):
        assert limiter.enabled is False

    def test_rate_limit_response_uses_envelope(self):
        response = rate_limit_exceeded_handler(MagicMock(), MagicMock())

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        body = json.loads(response.body)
        assert body["status"] == "fail"
        assert "Too many requests" in body["message"]


class TestErrorEnvelope:
    """AppError subclasses and handler mapping."""

    def test_client_errors_are_fail(self):
        error = ValidationError("Bad", errors=[{"field": "teamName", "message": "Bad"}])
        assert error.to_dict() == {
            "status": "fail",
            "message": "Bad",
            "errors": [{"field": "teamName", "message": "Bad"}],
        }
        assert NotFoundError("Team not found").status_code == 404

    def test_server_errors_are_error(self):
        assert AppError("Boom").to_dict() == {"status": "error", "message": "Boom"}

    @pytest.mark.parametrize(
        "detail,expected",
        [
            ("UNIQUE constraint failed: teams.registration_number", "Registration number"),
            ("UNIQUE constraint failed: team_members.usn", "USN"),
            ('duplicate key value violates unique constraint "uq_team_members_email"', "email"),
            ("something else", "Duplicate value"),
        ],
    )
    def test_integrity_error_mapping(self, detail, expected):
        conflict = conflict_from_integrity_error(IntegrityError("INSERT", {}, Exception(detail)))

        assert isinstance(conflict, ConflictError)
        assert conflict.status_code == 409
        assert expected in conflict.message

    async def test_unhandled_error_hides_detail(self):
        request = MagicMock()
        request.url.path = "/teams"

        response = await unhandled_exception_handler(request, RuntimeError("db password is hunter2"))

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body == {"status": "error", "message": "Something went wrong!"}
