"""Bearer token providers for Fabric API calls."""

import logging
from typing import Protocol

from dataagent_server.errors import DataAgentValidationError

logger = logging.getLogger(__name__)


class CredentialProvider(Protocol):
    """Supplies a bearer token for a fixed scope."""

    async def get_token(self, scope: str) -> str: ...


class StaticTokenProvider:
    """Credential provider returning a preconfigured access token.

    The token is typically supplied through DATAAGENT_ACCESS_TOKEN. The scope
    is accepted for interface compatibility and only logged.
    """

    def __init__(self, token: str | None) -> None:
        self._token = token

    async def get_token(self, scope: str) -> str:
        if not self._token:
            raise DataAgentValidationError(
                "No access token configured (set DATAAGENT_ACCESS_TOKEN)"
            )
        logger.debug(f"Providing static access token for scope: {scope}")
        return self._token
