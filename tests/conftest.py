"""Pytest configuration and shared fixtures for dataagent-server tests.

This module provides common fixtures used across all test modules,
including test app creation, async client setup and stub HTTP transports.
"""

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from dataagent_server import create_app
from dataagent_server.config import DataAgentServerSettings
from dataagent_server.fabric import FabricClient, StaticTokenProvider
from tests.stubs import ASSISTANT_ROOT, INVENTORY_ROOT, StubTransport


@pytest.fixture
def stub_transport():
    """Create an empty StubTransport."""
    return StubTransport()


@pytest_asyncio.fixture
async def fabric_client(stub_transport):
    """Create a FabricClient whose requests are served by stub_transport."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(stub_transport)) as http:
        yield FabricClient(
            http_client=http,
            credentials=StaticTokenProvider("test-token"),
            scope="https://analysis.windows.net/powerbi/api/.default",
            user_agent="dataagent-server-tests",
        )


@pytest.fixture
def test_settings():
    """Create test settings pointing at stub API roots.

    Returns:
        DataAgentServerSettings: Settings instance configured for testing.
    """
    return DataAgentServerSettings(
        host="127.0.0.1",
        port=8000,
        inventory_api_root=INVENTORY_ROOT,
        assistant_api_root=ASSISTANT_ROOT,
        access_token="test-token",
        log_level="DEBUG",
        cors_origins=["*"],
    )


@pytest.fixture
def test_app(test_settings):
    """Create a FastAPI test application instance."""
    return create_app(settings=test_settings)


@pytest_asyncio.fixture
async def async_client(test_app):
    """Create an async HTTP client for testing FastAPI endpoints.

    Yields:
        AsyncClient: Async HTTP client for making test requests.
    """
    # Trigger the lifespan startup manually for tests
    async with test_app.router.lifespan_context(test_app):
        transport = ASGITransport(app=test_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
