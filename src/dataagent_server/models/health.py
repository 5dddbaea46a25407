"""Health check response model."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for the health check endpoint.

    Attributes:
        status: Health status indicator ("ok" or "error").
        version: The version of dataagent-server.
        inventory_api_root: Configured inventory API root URL.
        assistant_api_root: Configured assistant API root URL.
    """

    status: str = Field(..., description="Health status of the service")
    version: str = Field(..., description="Version of dataagent-server")
    inventory_api_root: str | None = Field(
        default=None,
        description="Inventory API root URL",
    )
    assistant_api_root: str | None = Field(
        default=None,
        description="Assistant API root URL",
    )
