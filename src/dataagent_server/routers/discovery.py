"""Discovery router for finding data agents relevant to a query."""

import logging

from fastapi import APIRouter, Depends

from dataagent_server.dependencies import get_data_agent_service
from dataagent_server.errors import DataAgentError
from dataagent_server.models.discovery import (
    DiscoveredDataAgent,
    DiscoverRequest,
    DiscoverResponse,
)
from dataagent_server.routers.errors import to_http_exception
from dataagent_server.routers.workspaces import data_agent_to_detail, workspace_to_detail
from dataagent_server.services import DataAgentService, relevance_score
from dataagent_server.services.discovery import DiscoveredAgent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["discovery"])


def _to_discovered(pairs: list[DiscoveredAgent], query: str) -> list[DiscoveredDataAgent]:
    return [
        DiscoveredDataAgent(
            workspace=workspace_to_detail(workspace),
            data_agent=data_agent_to_detail(agent),
            relevance_score=relevance_score(agent, query),
        )
        for workspace, agent in pairs
    ]


@router.post("/discover", response_model=DiscoverResponse)
async def discover_data_agents(
    request_body: DiscoverRequest,
    service: DataAgentService = Depends(get_data_agent_service),
) -> DiscoverResponse:
    """Discover data agents across workspaces for a query.

    Workspaces whose data agents cannot be listed are skipped, so partial
    results are returned when some workspaces fail.

    Raises:
        HTTPException: 400 if the query is empty, 502 if workspaces cannot be listed.
    """
    try:
        result = await service.discover_agents(
            request_body.query,
            workspace_id=request_body.workspace_id,
            workspace_name=request_body.workspace_name,
            agent_name=request_body.data_agent_name,
            retry_policy=request_body.retry_policy,
        )
    except DataAgentError as e:
        raise to_http_exception(e)

    logger.info(f"Discovery for '{request_body.query}' found {len(result.data_agents)} data agents")
    return DiscoverResponse(
        query=result.query,
        workspace_id=result.workspace_id,
        data_agents=_to_discovered(result.data_agents, result.query),
        suggested_data_agents=_to_discovered(result.suggested_data_agents, result.query),
        workspaces_with_data_agents=[
            workspace_to_detail(w) for w in result.workspaces_with_data_agents
        ],
        discovery_summary=result.discovery_summary,
        selection_guide=result.selection_guide,
    )
