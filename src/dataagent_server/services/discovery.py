"""Data agent discovery across workspaces.

Discovery narrows the set of (workspace, data agent) pairs through a fixed
filtering pipeline and then ranks the survivors against a free-text query:

1. active workspaces only
2. optional workspace id filter (exact, case-insensitive)
3. optional workspace name filter (substring of name or display name)
4. per-workspace agent listing, run concurrently; a failing workspace
   contributes no agents
5. active agents only
6. optional agent name filter (substring of name, display name or description)

The ranked "suggested" view is derived from the filtered list and never
changes it.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from dataagent_server.errors import require_non_empty
from dataagent_server.fabric.types import DataAgentInfo, WorkspaceInfo
from dataagent_server.services.resources import ResourceLister

logger = logging.getLogger(__name__)

AgentLister = Callable[[str], Awaitable[list[DataAgentInfo]]]
DiscoveredAgent = tuple[WorkspaceInfo, DataAgentInfo]

EXACT_NAME_SCORE = 100
NAME_CONTAINS_SCORE = 50
DESCRIPTION_CONTAINS_SCORE = 30
TAG_CONTAINS_SCORE = 20


def _contains(text: str | None, needle: str) -> bool:
    return text is not None and needle.lower() in text.lower()


def filter_workspaces(
    workspaces: list[WorkspaceInfo],
    workspace_id: str | None = None,
    workspace_name: str | None = None,
) -> list[WorkspaceInfo]:
    """Apply the workspace stages of the discovery pipeline."""
    filtered = [w for w in workspaces if w.is_active]

    if workspace_id:
        filtered = [w for w in filtered if w.id.lower() == workspace_id.lower()]

    if workspace_name:
        filtered = [
            w
            for w in filtered
            if _contains(w.name, workspace_name) or _contains(w.display_name, workspace_name)
        ]

    return filtered


def filter_data_agents(
    data_agents: list[DataAgentInfo],
    agent_name: str | None = None,
) -> list[DataAgentInfo]:
    """Apply the data agent stages of the discovery pipeline."""
    filtered = [a for a in data_agents if a.is_active]

    if agent_name:
        filtered = [
            a
            for a in filtered
            if _contains(a.name, agent_name)
            or _contains(a.display_name, agent_name)
            or _contains(a.description, agent_name)
        ]

    return filtered


def matches_query(data_agent: DataAgentInfo, query: str) -> bool:
    """Whether any searchable field of the agent mentions the query."""
    return (
        _contains(data_agent.name, query)
        or _contains(data_agent.display_name, query)
        or _contains(data_agent.description, query)
        or any(_contains(tag, query) for tag in data_agent.tags or ())
    )


def relevance_score(data_agent: DataAgentInfo, query: str) -> int:
    """Score how well a data agent matches a query. Higher is better.

    Each field contributes at most once: an exact name match earns 100,
    otherwise a name containing the query earns 50; a matching description
    adds 30 and any matching tag adds 20.
    """
    score = 0

    if data_agent.name.lower() == query.lower():
        score += EXACT_NAME_SCORE
    elif _contains(data_agent.name, query):
        score += NAME_CONTAINS_SCORE

    if _contains(data_agent.description, query):
        score += DESCRIPTION_CONTAINS_SCORE

    if any(_contains(tag, query) for tag in data_agent.tags or ()):
        score += TAG_CONTAINS_SCORE

    return score


def rank_data_agents(data_agents: list[DiscoveredAgent], query: str) -> list[DiscoveredAgent]:
    """Return agents matching the query, best first.

    Ties keep their pipeline order (sorted() is stable).
    """
    matching = [pair for pair in data_agents if matches_query(pair[1], query)]
    return sorted(matching, key=lambda pair: relevance_score(pair[1], query), reverse=True)


@dataclass
class DiscoveryResult:
    """Outcome of a discovery run.

    Attributes:
        query: The free-text query used for ranking
        workspace_id: Workspace id filter, if one was given
        data_agents: Filtered (workspace, data agent) pairs in pipeline order
    """

    query: str
    workspace_id: str | None = None
    data_agents: list[DiscoveredAgent] = field(default_factory=list)

    @property
    def suggested_data_agents(self) -> list[DiscoveredAgent]:
        """Agents matching the query, ranked by relevance score."""
        return rank_data_agents(self.data_agents, self.query)

    @property
    def workspaces_with_data_agents(self) -> list[WorkspaceInfo]:
        """Distinct workspaces contributing at least one agent, in order."""
        seen: dict[str, WorkspaceInfo] = {}
        for workspace, _ in self.data_agents:
            seen.setdefault(workspace.id, workspace)
        return list(seen.values())

    @property
    def discovery_summary(self) -> str:
        scope = f"Workspace {self.workspace_id}" if self.workspace_id else "All workspaces"
        lines = [
            f'Query: "{self.query}"',
            f"Scope: {scope}",
            f"Found {len(self.data_agents)} available data agents:",
            "",
        ]
        for workspace, agent in self.data_agents:
            tags = ", ".join(agent.tags) if agent.tags else "None"
            lines.extend(
                [
                    agent.display_name,
                    f"   - ID: {agent.id}",
                    f"   - Workspace: {workspace.display_name} ({workspace.id})",
                    f"   - Type: {agent.type}",
                    f"   - Capacity: {workspace.capacity_id or ''}",
                    f"   - Tags: {tags}",
                ]
            )
        return "\n".join(lines)

    @property
    def selection_guide(self) -> str:
        if not self.data_agents:
            return (
                "No data agents found. Please check if workspaces contain data agents "
                "or try different filter criteria."
            )

        lines = [
            "To query any of these data agents, send:",
            'POST /api/v1/query {"workspace_id": ..., "agent_id": ..., '
            '"capacity_id": ..., "query": ...}',
            "",
            "Examples:",
        ]
        for workspace, agent in self.data_agents[:3]:
            lines.append(
                f'workspace_id={workspace.id} agent_id={agent.id} '
                f'capacity_id={workspace.capacity_id or ""} query="{self.query}"'
            )
        return "\n".join(lines)


async def discover_data_agents(
    workspaces: list[WorkspaceInfo],
    list_agents: AgentLister,
    query: str,
    workspace_id: str | None = None,
    workspace_name: str | None = None,
    agent_name: str | None = None,
) -> DiscoveryResult:
    """Run the discovery pipeline over an already listed set of workspaces.

    Agent listing fans out with one task per surviving workspace. A failing
    task is logged and contributes nothing; results are assembled only after
    every task has finished.

    Args:
        workspaces: All known workspaces
        list_agents: Async callable listing the agents of one workspace
        query: Free-text query used for ranking
        workspace_id: Optional exact workspace id filter
        workspace_name: Optional workspace name substring filter
        agent_name: Optional agent name substring filter

    Returns:
        DiscoveryResult: Filtered agents with the ranked view available
    """
    require_non_empty(query=query)
    selected = filter_workspaces(workspaces, workspace_id, workspace_name)
    logger.info(f"Searching across {len(selected)} workspaces for data agents")

    async def agents_for(workspace: WorkspaceInfo) -> list[DiscoveredAgent]:
        try:
            data_agents = await list_agents(workspace.id)
        except Exception as e:
            logger.warning(f"Failed to list data agents from workspace {workspace.id}: {e}")
            return []
        return [(workspace, agent) for agent in filter_data_agents(data_agents, agent_name)]

    per_workspace = await asyncio.gather(*(agents_for(w) for w in selected))

    discovered = [pair for pairs in per_workspace for pair in pairs]
    logger.info(
        f"Found {len(discovered)} data agents across {len(selected)} workspaces"
    )
    return DiscoveryResult(query=query, workspace_id=workspace_id, data_agents=discovered)


class DiscoveryService:
    """Discovers data agents using a ResourceLister."""

    def __init__(self, lister: ResourceLister) -> None:
        self._lister = lister

    async def discover(
        self,
        query: str,
        workspace_id: str | None = None,
        workspace_name: str | None = None,
        agent_name: str | None = None,
    ) -> DiscoveryResult:
        require_non_empty(query=query)
        workspaces = await self._lister.list_workspaces()
        return await discover_data_agents(
            workspaces,
            self._lister.list_data_agents,
            query,
            workspace_id=workspace_id,
            workspace_name=workspace_name,
            agent_name=agent_name,
        )
