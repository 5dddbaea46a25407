"""Configuration module for dataagent-server using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DataAgentServerSettings(BaseSettings):
    """Main configuration settings for dataagent-server.

    All settings can be overridden via environment variables with the DATAAGENT_ prefix.
    For example, DATAAGENT_INVENTORY_API_ROOT will override the inventory_api_root setting.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Fabric inventory API (workspaces and items)
    inventory_api_root: str = "https://api.fabric.microsoft.com/v1"

    # Per-agent assistant API
    assistant_api_root: str = "http://localhost:38080"

    # Credentials
    token_scope: str = "https://analysis.windows.net/powerbi/api/.default"
    access_token: str | None = None

    # HTTP
    user_agent: str = "dataagent-server/0.1.0"
    request_timeout: float = 100.0

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="DATAAGENT_")
