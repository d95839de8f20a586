"""Test configuration and shared fixtures.

Provide isolated settings, metrics and client fixtures. No fixture reads a `.env`
file or probes anything outside the loopback interface.
"""
import socket
from typing import Generator, Iterator

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.config import Settings, get_settings
from app.portwatch.metrics import HealthMetrics

# ==============================================================================
# CONFIGURATION FIXTURES
# ==============================================================================

@pytest.fixture(scope="session")
def mock_settings() -> Settings:
    """Provide isolated test configuration without external dependencies.

    Returns:
        Settings: Development settings with no endpoints and a long rescan so
            the background scheduler stays idle during HTTP tests.
    """
    return Settings(
        ENVIRONMENT="development",
        LOG_LEVEL="debug",
        ENDPOINTS="",
        RESCAN=3600,
        NODEIP="10.1.1.1",
        _env_file=None  # Bypass any local environment file
    )

@pytest.fixture(scope="function")
def client(mock_settings: Settings) -> Generator[TestClient, None, None]:
    """Provide HTTP test client with isolated dependency injection.

    Preserve original dependency overrides and restore them after test completion
    to prevent test isolation issues.

    Args:
        mock_settings: Isolated test configuration.

    Yields:
        TestClient: FastAPI test client with mocked settings and a running lifespan.
    """
    original_override = app.dependency_overrides.get(get_settings)
    app.dependency_overrides[get_settings] = lambda: mock_settings

    with TestClient(app) as test_client:
        yield test_client

    if original_override:
        app.dependency_overrides[get_settings] = original_override
    else:
        app.dependency_overrides.pop(get_settings, None)

# ==============================================================================
# METRICS & NETWORK HELPERS
# ==============================================================================

@pytest.fixture
def metrics() -> HealthMetrics:
    """Provide a HealthMetrics instance backed by its own registry."""
    return HealthMetrics("test", "health", include_process_metrics=False)


@pytest.fixture
def listening_endpoint() -> Iterator[str]:
    """Yield a `host:port` string with a socket listening behind it."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(8)
    host, port = server.getsockname()
    try:
        yield f"{host}:{port}"
    finally:
        server.close()


@pytest.fixture
def closed_endpoint() -> str:
    """Return a `host:port` string on loopback with nothing listening."""
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    host, port = probe.getsockname()
    probe.close()
    return f"{host}:{port}"
