"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before any ``app`` import so module-level
settings and the storage singleton pick them up.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ["STORAGE_PROVIDER"] = "memory"

os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("APP_RATE_LIMIT_REQUESTS", "100")
os.environ.setdefault("APP_RATE_LIMIT_WINDOW_SECONDS", "300")
os.environ.setdefault("UPLOAD_MAX_FILE_SIZE_MB", "1")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.adapters.storage.factory import reset_storage_adapter
from app.adapters.storage.in_memory import InMemoryStorageAdapter
from app.adapters.uploads.in_memory import InMemoryUploadRepository
from app.core.app_factory import create_app
from app.core.context import AppContext
from app.utils.image_processor import ImageProcessorOptions


@pytest.fixture(autouse=True)
def _isolated_storage_singleton():
    """Every test starts (and ends) without a cached storage adapter."""
    reset_storage_adapter()
    yield
    reset_storage_adapter()


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1000.0)


@pytest.fixture
def storage() -> InMemoryStorageAdapter:
    return InMemoryStorageAdapter()


@pytest.fixture
def uploads() -> InMemoryUploadRepository:
    return InMemoryUploadRepository()


@pytest.fixture
def context(storage, uploads, clock) -> AppContext:
    return AppContext(
        storage=storage,
        rate_limiter=InMemorySlidingWindowRateLimiter(limit=100, window_seconds=300, clock=clock),
        uploads=uploads,
        image_options=ImageProcessorOptions(enabled=False),
    )


@pytest.fixture
def client(context) -> TestClient:
    return TestClient(create_app(context=context))
