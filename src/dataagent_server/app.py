"""FastAPI application factory and lifespan management.

This module contains the create_app() factory function that creates and configures
the FastAPI application instance, including lifespan management for startup/shutdown
and router registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dataagent_server import __version__
from dataagent_server.config import DataAgentServerSettings
from dataagent_server.fabric import FabricClient, StaticTokenProvider
from dataagent_server.routers import discovery, health, query, workspaces
from dataagent_server.services import DataAgentService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for FastAPI application.

    The shared httpx.AsyncClient and the DataAgentService are created once
    at startup and stored in app.state for reuse across all requests.

    Args:
        app: The FastAPI application instance.

    Yields:
        None: Control is yielded while the app is running.
    """
    settings: DataAgentServerSettings = app.state.settings
    app.state.http_client = httpx.AsyncClient(timeout=settings.request_timeout)

    fabric_client = FabricClient(
        http_client=app.state.http_client,
        credentials=StaticTokenProvider(settings.access_token),
        scope=settings.token_scope,
        user_agent=settings.user_agent,
    )
    app.state.data_agent_service = DataAgentService(
        client=fabric_client,
        inventory_root=settings.inventory_api_root,
        assistant_api_root=settings.assistant_api_root,
    )
    logger.info(
        f"Initialized data agent service (inventory: {settings.inventory_api_root}, "
        f"assistants: {settings.assistant_api_root})"
    )
    if not settings.access_token:
        logger.warning("No access token configured - upstream calls will be rejected")

    yield

    # Shutdown: Clean up resources
    if hasattr(app.state, "http_client"):
        await app.state.http_client.aclose()
        logger.info("HTTP client closed")


def create_app(settings: DataAgentServerSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional DataAgentServerSettings instance. If not provided,
                  settings will be loaded from environment variables.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        from dataagent_server.dependencies import get_settings

        settings = get_settings()

    app = FastAPI(
        title="dataagent-server",
        description="Headless FastAPI server for discovering and querying Fabric data agents",
        version=__version__,
        lifespan=lifespan,
    )

    # Store settings in app.state for lifespan access
    app.state.settings = settings

    # Note: FastAPI's type hints for add_middleware are overly strict
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(workspaces.router)
    app.include_router(discovery.router)
    app.include_router(query.router)

    return app
