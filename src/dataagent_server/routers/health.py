"""Health check endpoint router."""

import logging

from fastapi import APIRouter, Request

from dataagent_server.models.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Returns the current health status and version of the dataagent-server,
    together with the configured upstream API roots.

    Args:
        request: The FastAPI request object.

    Returns:
        HealthResponse: Health status and version information.
    """
    from dataagent_server import __version__

    settings = request.app.state.settings
    logger.debug("Health check requested")

    return HealthResponse(
        status="ok",
        version=__version__,
        inventory_api_root=settings.inventory_api_root,
        assistant_api_root=settings.assistant_api_root,
    )
