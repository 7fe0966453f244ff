"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="session")
def app():
    """Create FastAPI application for testing."""
    from partner_portal.main import create_app

    return create_app()


@pytest.fixture(scope="function")
def client(app):
    """Create test client with dependency overrides cleared afterwards."""
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def settings():
    """Create settings instance for testing."""
    from partner_portal.core.config import Settings

    return Settings(environment="testing")
