"""
Tests for error handling.
Tests custom exceptions, error response formatting and the request logging middleware.
"""

import pytest
import json
from unittest.mock import Mock
from sqlalchemy.exc import IntegrityError
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from credora.middleware import RequestLoggingMiddleware
from credora.services.error_handler import ErrorHandlerService
from credora.utils.exceptions import (
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ApplicationStatusError,
    ApplicationIncompleteError,
    WebhookSignatureError,
    ResourceLimitExceededError,
)
from tests.conftest import assert_error_response


class TestErrorHandlerService:
    """Test error handler service functionality."""

    def test_format_error_response(self):
        response = ErrorHandlerService.format_error_response(
            error_code="TEST_ERROR",
            message="Test error message",
            details=[{"field": "test", "message": "Test field error"}],
            request_id="test123"
        )

        assert response["error"]["code"] == "TEST_ERROR"
        assert response["error"]["message"] == "Test error message"
        assert response["error"]["request_id"] == "test123"
        assert response["error"]["details"][0]["field"] == "test"
        assert response["error"]["timestamp"].endswith("Z")

    def test_handle_api_exception(self):
        response = ErrorHandlerService.handle_api_exception(ValidationError("Test validation error"))

        assert response.status_code == 422
        data = json.loads(response.body)
        assert data["error"]["code"] == "VALIDATION_ERROR"
        assert data["error"]["message"] == "Test validation error"

    def test_incomplete_application_lists_fields(self):
        exception = ApplicationIncompleteError([{"field": "personal.ssn", "message": "SSN is required"}])
        response = ErrorHandlerService.handle_api_exception(exception)

        data = json.loads(response.body)
        assert response.status_code == 422
        assert data["error"]["details"] == [{"field": "personal.ssn", "message": "SSN is required"}]

    def test_handle_validation_error(self):
        mock_error = Mock()
        mock_error.errors.return_value = [
            {"loc": ("body", "email"), "msg": "Field required", "type": "missing", "input": None},
            {"loc": ("query", "limit"), "msg": "Input should be less than or equal to 50", "type": "less_than_equal", "input": "99"},
        ]

        response = ErrorHandlerService.handle_validation_error(mock_error)

        data = json.loads(response.body)
        assert response.status_code == 422
        assert data["error"]["message"] == "Request validation failed"
        assert [d["field"] for d in data["error"]["details"]] == ["body -> email", "query -> limit"]

    def test_handle_database_error(self):
        integrity_error = IntegrityError("statement", "params", Exception("UNIQUE constraint failed: users.email"))
        response = ErrorHandlerService.handle_database_error(integrity_error)

        data = json.loads(response.body)
        assert response.status_code == 409
        assert data["error"]["code"] == "INTEGRITY_ERROR"
        assert data["error"]["message"] == "An account with this email already exists"

    def test_handle_database_error_generic_constraints(self):
        unique = IntegrityError("statement", "params", Exception("UNIQUE constraint failed: reviews.id"))
        foreign_key = IntegrityError("statement", "params", Exception("FOREIGN KEY constraint failed"))

        assert json.loads(ErrorHandlerService.handle_database_error(unique).body)["error"]["message"] == (
            "Constraint violation: Duplicate value for unique field"
        )
        assert json.loads(ErrorHandlerService.handle_database_error(foreign_key).body)["error"]["message"] == (
            "Constraint violation: Referenced record does not exist"
        )

    def test_validation_error_redacts_secrets(self):
        mock_error = Mock()
        mock_error.errors.return_value = [
            {"loc": ("body", "new_password"), "msg": "String should have at least 8 characters",
             "type": "string_too_short", "input": "short"},
            {"loc": ("body",), "msg": "Field required", "type": "missing",
             "input": {"ssn": "123-45-6789", "first_name": "Jane"}},
        ]

        data = json.loads(ErrorHandlerService.handle_validation_error(mock_error).body)

        assert data["error"]["details"][0]["input"] == "[redacted]"
        assert data["error"]["details"][1]["input"] == {"ssn": "[redacted]", "first_name": "Jane"}

    def test_handle_unexpected_error_hides_internals(self):
        response = ErrorHandlerService.handle_unexpected_error(Exception("secret connection string"))

        data = json.loads(response.body)
        assert response.status_code == 500
        assert data["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert "secret" not in data["error"]["message"]


class TestCustomExceptions:
    def test_not_found_message(self):
        error = NotFoundError("Application", "abc")
        assert error.status_code == 404
        assert error.detail == "Application not found with ID: abc"

    def test_unauthorized_sets_bearer_challenge(self):
        error = UnauthorizedError()
        assert error.status_code == 401
        assert error.headers == {"WWW-Authenticate": "Bearer"}

    def test_status_transition_error(self):
        error = ApplicationStatusError("submitted", "approved")
        assert error.status_code == 400
        assert "'submitted' to 'approved'" in error.detail

    def test_webhook_signature_status_is_configurable(self):
        assert WebhookSignatureError().status_code == 400
        assert WebhookSignatureError(status_code=401).status_code == 401

    def test_resource_limit(self):
        assert ResourceLimitExceededError("Property", 5).detail == "Property limit exceeded (maximum: 5)"


class TestErrorResponses:
    """Error envelope and middleware headers through the app."""

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, async_client):
        response = await async_client.get("/", headers={"X-Request-ID": "req-42"})

        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == "req-42"
        assert "X-Processing-Time" in response.headers

    @pytest.mark.asyncio
    async def test_request_validation_envelope(self, async_client):
        response = await async_client.post("/api/v1/auth/login", json={"email": "not-an-email"})

        error = assert_error_response(response, 422, "VALIDATION_ERROR")
        fields = {detail["field"] for detail in error["details"]}
        assert "body -> email" in fields
        assert "body -> password" in fields

    @pytest.mark.asyncio
    async def test_missing_token(self, async_client):
        response = await async_client.get("/api/v1/auth/me")

        error = assert_error_response(response, 401, "UNAUTHORIZED")
        assert error["message"] == "Authentication token required"

    @pytest.mark.asyncio
    async def test_unknown_route(self, async_client):
        response = await async_client.get("/api/v1/nowhere")

        assert_error_response(response, 404, "HTTP_404")

    @pytest.mark.asyncio
    async def test_oversized_request_rejected(self):
        app = FastAPI()
        app.add_middleware(RequestLoggingMiddleware, max_request_size=100)

        @app.post("/echo")
        async def echo():
            return {"ok": True}

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            small = await client.post("/echo", content=b"x" * 10)
            large = await client.post("/echo", content=b"x" * 500)

        assert small.status_code == 200
        error = assert_error_response(large, 400, "BAD_REQUEST")
        assert "exceeds maximum allowed size 100 bytes" in error["message"]
        assert large.headers["X-Request-ID"] == error["request_id"]
