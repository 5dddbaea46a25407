"""Dependency injection providers for FastAPI endpoints.

This module provides FastAPI dependency functions that are used across
multiple routers to inject common dependencies like settings and services.
"""

from functools import lru_cache

from fastapi import HTTPException, Request

from dataagent_server.config import DataAgentServerSettings
from dataagent_server.services import DataAgentService


@lru_cache
def get_settings() -> DataAgentServerSettings:
    """Get the application settings instance.

    This function is cached so that the same settings instance is reused
    across all requests. Settings are loaded from environment variables
    with the DATAAGENT_ prefix.

    Returns:
        DataAgentServerSettings: The application configuration settings.
    """
    return DataAgentServerSettings()


def get_data_agent_service(request: Request) -> DataAgentService:
    """Get the DataAgentService from app state.

    The service is created during application startup and stored in
    app.state together with the shared HTTP client.

    Args:
        request: The FastAPI request object.

    Returns:
        DataAgentService: The data agent service instance.

    Raises:
        HTTPException: If the service is not initialized (503 Service Unavailable).
    """
    if not hasattr(request.app.state, "data_agent_service"):
        raise HTTPException(
            status_code=503,
            detail="Data agent service not initialized",
        )
    return request.app.state.data_agent_service
