"""Pytest configuration for integration tests.

This module provides integration-test-specific fixtures that replace the
DataAgentService built by the app lifespan with a mock.
"""

from unittest.mock import AsyncMock, patch

import pytest

from dataagent_server.services import DataAgentService


@pytest.fixture(autouse=True)
def mock_data_agent_service():
    """Mock DataAgentService for all integration tests.

    This fixture patches the DataAgentService class before the app is created,
    ensuring the lifespan stores our mock instead of a real service.
    """
    with patch("dataagent_server.app.DataAgentService") as mock_service_class:
        mock_instance = AsyncMock(spec=DataAgentService)
        mock_instance.query_agent.return_value = '{"id": "msg_0", "content": "42"}'
        mock_instance.query_agent_streaming.return_value = '{"id": "msg_0", "content": "42"}'
        mock_instance.list_workspaces.return_value = []
        mock_instance.list_agents.return_value = []

        mock_service_class.return_value = mock_instance

        yield mock_instance
