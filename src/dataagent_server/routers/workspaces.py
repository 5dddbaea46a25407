"""Workspaces router for listing workspaces and their data agents."""

import logging

from fastapi import APIRouter, Depends

from dataagent_server.dependencies import get_data_agent_service
from dataagent_server.errors import DataAgentError
from dataagent_server.fabric import DataAgentInfo, WorkspaceInfo
from dataagent_server.models.workspaces import (
    DataAgentDetail,
    DataAgentListResponse,
    WorkspaceDetail,
    WorkspaceListResponse,
)
from dataagent_server.routers.errors import to_http_exception
from dataagent_server.services import DataAgentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["workspaces"])


def workspace_to_detail(workspace: WorkspaceInfo) -> WorkspaceDetail:
    """Convert a WorkspaceInfo dataclass to its Pydantic model."""
    return WorkspaceDetail.model_validate(workspace)


def data_agent_to_detail(data_agent: DataAgentInfo) -> DataAgentDetail:
    """Convert a DataAgentInfo dataclass to its Pydantic model."""
    return DataAgentDetail.model_validate(data_agent)


@router.get("/workspaces", response_model=WorkspaceListResponse)
async def list_workspaces(
    service: DataAgentService = Depends(get_data_agent_service),
) -> WorkspaceListResponse:
    """List all workspaces available for data agent discovery.

    Raises:
        HTTPException: 502 if the inventory API fails.
    """
    try:
        workspaces = await service.list_workspaces()
    except DataAgentError as e:
        raise to_http_exception(e)

    logger.info(f"Listed {len(workspaces)} workspaces")
    return WorkspaceListResponse(
        workspaces=[workspace_to_detail(w) for w in workspaces]
    )


@router.get("/workspaces/{workspace_id}/agents", response_model=DataAgentListResponse)
async def list_data_agents(
    workspace_id: str,
    service: DataAgentService = Depends(get_data_agent_service),
) -> DataAgentListResponse:
    """List the data agents in a workspace.

    Raises:
        HTTPException: 502 if the inventory API fails.
    """
    try:
        data_agents = await service.list_agents(workspace_id)
    except DataAgentError as e:
        raise to_http_exception(e)

    return DataAgentListResponse(
        workspace_id=workspace_id,
        data_agents=[data_agent_to_detail(a) for a in data_agents],
    )
