"""Workspace and data agent listing from the Fabric inventory API."""

import logging
from typing import Any

from dataagent_server.errors import DataAgentProtocolError, require_non_empty
from dataagent_server.fabric.client import FabricClient
from dataagent_server.fabric.types import DataAgentInfo, WorkspaceInfo

logger = logging.getLogger(__name__)


def _value_array(payload: Any) -> list[dict[str, Any]]:
    """Return the ``value`` array of a listing response, or [] when absent."""
    if not isinstance(payload, dict):
        raise DataAgentProtocolError("Inventory response is not a JSON object")
    value = payload.get("value")
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


class ResourceLister:
    """Enumerates workspaces and the data agents they contain.

    Attributes:
        inventory_root: Base URL of the inventory API (e.g.
                        "https://api.fabric.microsoft.com/v1")
    """

    def __init__(self, client: FabricClient, inventory_root: str) -> None:
        self._client = client
        self.inventory_root = inventory_root.rstrip("/")

    async def list_workspaces(self) -> list[WorkspaceInfo]:
        """List all workspaces visible to the caller.

        Returns:
            list[WorkspaceInfo]: Workspaces in API order

        Raises:
            DataAgentTransportError: If the inventory API request fails
            DataAgentProtocolError: If the response is not a JSON object
        """
        try:
            payload = await self._client.get_json(f"{self.inventory_root}/workspaces")
            workspaces = [WorkspaceInfo.from_fabric_item(item) for item in _value_array(payload)]
            logger.info(f"Listed {len(workspaces)} workspaces")
            return workspaces
        except Exception as e:
            logger.error(f"Failed to list workspaces: {e}")
            raise

    async def list_data_agents(self, workspace_id: str) -> list[DataAgentInfo]:
        """List the data agents in one workspace.

        Items are kept when their type contains "DataAgent", "AIAgent" or
        "Assistant" (case-insensitive); other items are skipped.

        Args:
            workspace_id: Workspace to list items from

        Returns:
            list[DataAgentInfo]: Data agents in API order

        Raises:
            DataAgentValidationError: If workspace_id is empty
            DataAgentTransportError: If the inventory API request fails
        """
        require_non_empty(workspace_id=workspace_id)

        try:
            payload = await self._client.get_json(
                f"{self.inventory_root}/workspaces/{workspace_id}/items"
            )
            data_agents: list[DataAgentInfo] = []
            for item in _value_array(payload):
                item_type = item.get("type")
                if DataAgentInfo.is_data_agent_type(item_type):
                    data_agents.append(DataAgentInfo.from_fabric_item(item, workspace_id))
                else:
                    logger.debug(f"Skipped non data agent item of type: {item_type}")

            logger.info(f"Listed {len(data_agents)} data agents in workspace {workspace_id}")
            return data_agents
        except Exception as e:
            logger.error(f"Failed to list data agents in workspace '{workspace_id}': {e}")
            raise
