"""Tests for the error translator in development and production modes."""

import pytest
from fastapi.testclient import TestClient
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.exc import IntegrityError, StatementError

from infographic_api.error_handlers import GENERIC_MESSAGE, normalize_error
from infographic_api.errors import (
    AppError,
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    TokenExpiredError,
    ValidationError,
)
from main import create_app


def add_failing_route(client: TestClient) -> None:
    def explode():
        raise RuntimeError("database exploded")

    client.app.add_api_route("/api/v1/explode", explode, methods=["GET"])


class TestNormalizeError:
    """Upstream faults map onto operational errors."""

    def test_app_error_passes_through(self):
        error = NotFoundError("gone")
        assert normalize_error(error) is error

    def test_duplicate_key(self):
        exc = IntegrityError("INSERT INTO users", {}, Exception("UNIQUE constraint failed: users.email"))
        error = normalize_error(exc)
        assert isinstance(error, ConflictError)
        assert error.status_code == 400
        assert error.message == "Duplicate field value: email. Please use another value!"

    def test_postgres_duplicate_key(self):
        exc = IntegrityError(
            "INSERT INTO users",
            {},
            Exception('duplicate key value violates unique constraint "ix_users_email"\n'
                      "DETAIL:  Key (email)=(a@example.com) already exists."),
        )
        error = normalize_error(exc)
        assert error.message == 'Duplicate field value: "a@example.com". Please use another value!'

    def test_malformed_value(self):
        exc = StatementError("bad parameter", "SELECT 1", {}, ValueError("not an int"))
        error = normalize_error(exc)
        assert isinstance(error, ValidationError)
        assert error.message == "Invalid input data."

    def test_integer_overflow(self):
        error = normalize_error(OverflowError("Python int too large to convert to SQLite INTEGER"))
        assert isinstance(error, ValidationError)
        assert error.status_code == 400
        assert error.message == "Invalid input data."

    def test_jwt_errors(self):
        assert isinstance(normalize_error(ExpiredSignatureError()), TokenExpiredError)
        assert isinstance(normalize_error(JWTError("bad")), InvalidTokenError)
        assert normalize_error(JWTError("bad")).status_code == 401

    def test_unknown_error_untouched(self):
        exc = KeyError("x")
        assert normalize_error(exc) is exc

    def test_status_word(self):
        assert AppError("x", status_code=404).status == "fail"
        assert AppError("x", status_code=503).status == "error"


class TestDevelopmentEnvelope:
    def test_operational_error_is_detailed(self, client: TestClient):
        response = client.get("/api/v1/nope")
        assert response.status_code == 404
        body = response.json()
        assert body["status"] == "fail"
        assert body["message"] == "Can't find /api/v1/nope on this server!"
        assert body["error"]["statusCode"] == 404
        assert body["error"]["isOperational"] is True
        assert "stack" in body

    def test_unexpected_error_is_detailed(self, client: TestClient):
        add_failing_route(client)
        response = client.get("/api/v1/explode")
        assert response.status_code == 500
        body = response.json()
        assert body["status"] == "error"
        assert body["message"] == "database exploded"
        assert body["error"]["name"] == "RuntimeError"
        assert body["error"]["isOperational"] is False
        assert "RuntimeError" in body["stack"]


class TestProductionEnvelope:
    def test_operational_error_shows_message_only(self, production_client: TestClient):
        response = production_client.get("/api/v1/nope")
        assert response.status_code == 404
        assert response.json() == {"status": "fail", "message": "Can't find /api/v1/nope on this server!"}

    def test_validation_error_shows_message_only(self, production_client: TestClient):
        response = production_client.post("/api/v1/auth/register", json={"name": "X"})
        assert response.status_code == 400
        body = response.json()
        assert set(body) == {"status", "message"}
        assert body["message"].startswith("Invalid input data.")

    def test_out_of_range_id_is_a_client_error(self, production_client: TestClient):
        response = production_client.get("/api/v1/infographics/99999999999999999999")
        assert response.status_code == 400
        assert response.json() == {"status": "fail", "message": "Invalid input data."}

    def test_unexpected_error_is_generic(self, production_client: TestClient, caplog):
        add_failing_route(production_client)
        response = production_client.get("/api/v1/explode")
        assert response.status_code == 500
        assert response.json() == {"status": "error", "message": GENERIC_MESSAGE}
        assert "database exploded" not in response.text
        assert any(record.levelname == "ERROR" for record in caplog.records)

    def test_docs_disabled(self, production_client: TestClient):
        assert production_client.get("/api-docs").status_code == 404

    def test_invalid_production_config_refuses_to_start(self, settings_factory):
        with pytest.raises(RuntimeError):
            create_app(
                settings_factory(APP_ENV="production", JWT_SECRET_KEY="short", SENDGRID_API_KEY="SG.test-key")
            )

    def test_production_requires_email_delivery(self, settings_factory):
        """Without SendGrid, one-time links would only ever reach the log."""
        settings = settings_factory(APP_ENV="production")
        assert "SENDGRID_API_KEY must be set in production" in settings.validate()
        with pytest.raises(RuntimeError, match="SENDGRID_API_KEY"):
            create_app(settings)

    def test_console_email_allowed_in_development(self, settings_factory):
        assert settings_factory().validate() == []
