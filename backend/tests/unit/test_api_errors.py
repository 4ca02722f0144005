"""Tests for API error classes and their HTTP envelope."""

import json

from rfc_app.core.errors import (
    APIError,
    AuthFailure,
    ConflictError,
    NotFoundError,
    SchemaError,
    StoreError,
    UnauthorizedError,
    ValidationError,
)
from rfc_app.main import api_error_handler, internal_error_handler


class TestAPIError:
    """Tests for base APIError class."""

    def test_api_error_has_required_attributes(self):
        """APIError should have code, message, status_code, details."""
        error = APIError(
            code="TEST_ERROR",
            message="Test message",
            status_code=418,
            details=[{"field": "test"}],
        )
        assert error.code == "TEST_ERROR"
        assert error.message == "Test message"
        assert error.status_code == 418
        assert error.details == [{"field": "test"}]

    def test_api_error_defaults_to_500(self):
        """APIError should default to 500 status code."""
        error = APIError(code="TEST", message="Test")
        assert error.status_code == 500
        assert error.details is None
        assert str(error) == "Test"


class TestSubclasses:
    """Status codes and codes of the concrete errors."""

    def test_validation_error(self):
        error = ValidationError("Comment body must not be empty")
        assert (error.code, error.status_code) == ("VALIDATION_ERROR", 400)

    def test_unauthorized_error_defaults(self):
        error = UnauthorizedError()
        assert (error.code, error.status_code) == ("UNAUTHORIZED", 401)
        assert error.message == "Authentication required"

    def test_auth_failure_is_unauthorized(self):
        """AuthFailure is a 401 with one fixed message."""
        error = AuthFailure()
        assert isinstance(error, UnauthorizedError)
        assert error.code == "INVALID_LOGIN_CODE"
        assert error.message == "Invalid or expired code"

    def test_not_found_with_id(self):
        error = NotFoundError("User", "7")
        assert error.status_code == 404
        assert error.message == "User with id '7' not found"

    def test_not_found_without_id(self):
        assert NotFoundError("User").message == "User not found"

    def test_conflict_error(self):
        error = ConflictError(code="EMAIL_ALREADY_EXISTS", message="taken")
        assert (error.code, error.status_code) == ("EMAIL_ALREADY_EXISTS", 409)

    def test_store_error(self):
        error = StoreError()
        assert (error.code, error.status_code) == ("STORE_UNAVAILABLE", 503)

    def test_schema_error_is_store_error(self):
        error = SchemaError("boom")
        assert isinstance(error, StoreError)
        assert error.code == "SCHEMA_MIGRATION_FAILED"
        assert error.message == "boom"


class TestHandlers:
    """Exception handlers render the standard envelope."""

    def test_api_error_handler(self):
        """APIError becomes its status and {"error": {...}}."""
        resp = api_error_handler(None, NotFoundError("User", "3"))  # type: ignore[arg-type]

        assert resp.status_code == 404
        assert json.loads(resp.body) == {
            "error": {
                "code": "NOT_FOUND",
                "message": "User with id '3' not found",
                "details": None,
            }
        }

    def test_store_error_is_503(self):
        resp = api_error_handler(None, StoreError())  # type: ignore[arg-type]

        assert resp.status_code == 503
        assert json.loads(resp.body)["error"]["code"] == "STORE_UNAVAILABLE"

    def test_internal_error_hides_details(self):
        """Unexpected exceptions become a bare 500."""

        class _Request:
            class url:  # noqa: N801
                path = "/boom"

        resp = internal_error_handler(_Request(), RuntimeError("secret detail"))  # type: ignore[arg-type]

        assert resp.status_code == 500
        body = json.loads(resp.body)
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert "secret detail" not in resp.body.decode()
