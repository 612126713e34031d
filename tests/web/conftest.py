"""Shared fixtures for web API tests."""

import pytest
from fastapi.testclient import TestClient

from web.app import app
from web.deps import get_pipeline


@pytest.fixture
def client(pipeline):
    """TestClient whose routes share the test pipeline (tmp SQLite, no LLM)."""
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def rm_headers():
    return {"X-RM-Id": "rm-7"}
