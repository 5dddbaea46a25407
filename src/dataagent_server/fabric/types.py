"""Type definitions for the Fabric inventory integration.

This module contains the immutable snapshots produced when listing
workspaces and data agents from the inventory API.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

DATA_AGENT_ITEM_TYPES = ("dataagent", "aiagent", "assistant")

# Stands in for absent or unparsable timestamps. Always UTC-aware.
MIN_TIMESTAMP = datetime.min.replace(tzinfo=timezone.utc)


def _get_str(item: dict[str, Any], key: str, default: str | None = None) -> str | None:
    """Get a string field from an inventory item, falling back to default."""
    value = item.get(key)
    if value is None:
        return default
    return str(value)


def _parse_timestamp(value: Any) -> datetime:
    """Parse an ISO 8601 timestamp, returning MIN_TIMESTAMP if unparsable.

    Timestamps without an offset are taken as UTC.
    """
    if not isinstance(value, str) or not value:
        return MIN_TIMESTAMP
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return MIN_TIMESTAMP
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _display_name(name: str, description: str | None) -> str:
    return f"{name} - {description}" if description else name


@dataclass(frozen=True)
class WorkspaceInfo:
    """A workspace that may host data agents.

    Attributes:
        id: Workspace identifier
        name: Workspace display name as reported by the inventory API
        description: Optional workspace description
        capacity_id: Capacity the workspace is assigned to, if any
        type: Workspace type (defaults to "Workspace")
        state: Workspace state (defaults to "Active")
    """

    id: str
    name: str
    description: str | None = None
    capacity_id: str | None = None
    type: str = "Workspace"
    state: str = "Active"

    @property
    def display_name(self) -> str:
        """Name combined with the description when one is present."""
        return _display_name(self.name, self.description)

    @property
    def is_active(self) -> bool:
        """Whether the workspace is available for data agent operations."""
        return self.state.lower() == "active"

    @staticmethod
    def from_fabric_item(item: dict[str, Any]) -> "WorkspaceInfo":
        """Create a WorkspaceInfo from one element of the workspaces listing.

        Args:
            item: Raw workspace object from the inventory API

        Returns:
            WorkspaceInfo: Parsed workspace snapshot
        """
        return WorkspaceInfo(
            id=_get_str(item, "id", ""),
            name=_get_str(item, "displayName", ""),
            description=_get_str(item, "description"),
            capacity_id=_get_str(item, "capacityId"),
            type=_get_str(item, "type", "Workspace"),
            state=_get_str(item, "state", "Active"),
        )


@dataclass(frozen=True)
class DataAgentInfo:
    """A data agent item discovered inside a workspace.

    Attributes:
        id: Item identifier of the data agent
        name: Display name as reported by the inventory API
        description: Optional description
        workspace_id: Identifier of the owning workspace
        type: Inventory item type (e.g. "DataAgent")
        state: Item state (defaults to "Active")
        created_date: Creation time, MIN_TIMESTAMP when unknown
        modified_date: Last modification time, MIN_TIMESTAMP when unknown
        tags: Item tags, or None when the item carries no tags field
    """

    id: str
    name: str
    description: str | None
    workspace_id: str
    type: str
    state: str = "Active"
    created_date: datetime = MIN_TIMESTAMP
    modified_date: datetime = MIN_TIMESTAMP
    tags: tuple[str, ...] | None = None

    @property
    def display_name(self) -> str:
        """Name combined with the description when one is present."""
        return _display_name(self.name, self.description)

    @property
    def is_active(self) -> bool:
        """Whether the data agent can currently be queried."""
        return self.state.lower() in ("active", "ready")

    @property
    def summary(self) -> str:
        """One-line description of the data agent."""
        text = (
            f"Data Agent: {self.display_name} (ID: {self.id}) - "
            f"Type: {self.type}, State: {self.state}"
        )
        if self.tags:
            text += f", Tags: {', '.join(self.tags)}"
        return text

    @staticmethod
    def is_data_agent_type(item_type: Any) -> bool:
        """Check whether an inventory item type denotes a data agent.

        Missing or non-string types never do.
        """
        if not isinstance(item_type, str) or not item_type:
            return False
        lowered = item_type.lower()
        return any(marker in lowered for marker in DATA_AGENT_ITEM_TYPES)

    @staticmethod
    def from_fabric_item(item: dict[str, Any], workspace_id: str) -> "DataAgentInfo":
        """Create a DataAgentInfo from one element of a workspace items listing.

        Args:
            item: Raw item object from the inventory API
            workspace_id: The workspace the item was listed from

        Returns:
            DataAgentInfo: Parsed data agent snapshot
        """
        raw_tags = item.get("tags")
        tags = None
        if isinstance(raw_tags, list):
            tags = tuple(str(tag) for tag in raw_tags if tag)

        return DataAgentInfo(
            id=_get_str(item, "id", ""),
            name=_get_str(item, "displayName", ""),
            description=_get_str(item, "description"),
            workspace_id=workspace_id,
            type=_get_str(item, "type", "DataAgent"),
            state=_get_str(item, "state", "Active"),
            created_date=_parse_timestamp(item.get("createdDate")),
            modified_date=_parse_timestamp(item.get("modifiedDate")),
            tags=tags,
        )
