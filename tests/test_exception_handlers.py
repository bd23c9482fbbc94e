"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.errors import (
    AppError,
    ForbiddenAppError,
    NotFoundAppError,
    StorageAppError,
    StorageNotFoundError,
    ValidationAppError,
)
from app.core.exception_handlers import setup_exception_handlers, status_code_for


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(
                code="invalid_storage_key",
                message="Invalid storage key (path traversal)",
            )

        response = client.get("/test-validation")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "invalid_storage_key"
        assert data["error"]["message"] == "Invalid storage key (path traversal)"
        assert "request_id" in data["error"]

    def test_validation_error_includes_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation-details")
        async def test_endpoint():
            raise ValidationAppError(
                code="storage_config_missing",
                message="Missing required environment variables for S3 storage: STORAGE_BUCKET",
                details={"provider": "s3", "missing": ["STORAGE_BUCKET"]},
            )

        response = client.get("/test-validation-details")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["details"]["missing"] == ["STORAGE_BUCKET"]

    def test_forbidden_error_returns_403(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-forbidden")
        async def test_endpoint():
            raise ForbiddenAppError(code="upload_not_public", message="Access to this file is forbidden")

        response = client.get("/test-forbidden")

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "upload_not_public"

    def test_storage_not_found_returns_404(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-missing-object")
        async def test_endpoint():
            raise StorageNotFoundError(code="not_found", message="Object not found: uploads/a.jpg")

        response = client.get("/test-missing-object")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

    def test_retryable_storage_error_returns_503_without_provider_text(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-storage-503")
        async def test_endpoint():
            raise StorageAppError(
                code="storage_write_error",
                message="put_object failed: SlowDown from bucket blog-prod",
                details={"key": "uploads/a.jpg", "provider": "s3"},
                retryable=True,
            )

        response = client.get("/test-storage-503")

        assert response.status_code == 503
        data = response.json()
        assert data["error"]["code"] == "storage_write_error"
        assert "blog-prod" not in response.text
        assert "details" not in data["error"]

    def test_permanent_storage_error_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-storage-500")
        async def test_endpoint():
            raise StorageAppError(code="storage_write_error", message="AccessDenied")

        response = client.get("/test-storage-500")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "storage_write_error"

    def test_error_response_format_is_consistent(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-format")
        async def test_endpoint():
            raise ValidationAppError(code="test", message="test")

        response = client.get("/test-format")
        data = response.json()

        # Required fields always present
        assert "error" in data
        assert "code" in data["error"]
        assert "message" in data["error"]
        assert "request_id" in data["error"]


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (ValidationAppError(code="x", message="x"), 400),
        (NotFoundAppError(code="x", message="x"), 404),
        (ForbiddenAppError(code="x", message="x"), 403),
        (StorageNotFoundError(code="not_found", message="x"), 404),
        (StorageAppError(code="storage_read_error", message="x", retryable=True), 503),
        (StorageAppError(code="storage_read_error", message="x"), 500),
        (AppError(code="x", message="x"), 400),
    ],
)
def test_status_code_mapping(exc: AppError, expected: int):
    assert status_code_for(exc) == expected


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_logic(self):
        from app.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("Unexpected error: bucket credentials rejected")
        response = asyncio.run(general_exception_handler(request, exc))

        response_body = response.body if isinstance(response.body, bytes) else bytes(response.body)
        data = json.loads(response_body.decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        # Original error message should NOT be in response
        assert "credentials" not in data["error"]["message"]
        assert "request_id" in data["error"]

    def test_general_exception_handler_never_leaks_stack_trace(self):
        from app.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_body = response.body if isinstance(response.body, bytes) else bytes(response.body)
        response_text = response_body.decode()
        assert "Traceback" not in response_text
        assert "File \"" not in response_text
        assert "ValueError" not in response_text


def test_multiple_handler_setups_does_not_fail():
    app = FastAPI()

    setup_exception_handlers(app)
    setup_exception_handlers(app)

    assert AppError in app.exception_handlers
