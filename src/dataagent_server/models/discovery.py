"""Pydantic models for the discovery endpoint."""

from pydantic import BaseModel, ConfigDict, Field

from dataagent_server.models.options import RetryPolicyOptions
from dataagent_server.models.workspaces import DataAgentDetail, WorkspaceDetail


class DiscoverRequest(BaseModel):
    """Request body for POST /api/v1/discover."""

    query: str = Field(..., description="The query to help find relevant data agents")
    workspace_id: str | None = Field(
        default=None, description="Optional workspace ID to limit search scope"
    )
    workspace_name: str | None = Field(
        default=None, description="Optional workspace name to limit search scope"
    )
    data_agent_name: str | None = Field(
        default=None, description="Optional data agent name to filter results"
    )
    retry_policy: RetryPolicyOptions | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"query": "sales"},
                {"query": "revenue by region", "workspace_name": "finance"},
            ]
        }
    )


class DiscoveredDataAgent(BaseModel):
    """A data agent together with the workspace hosting it."""

    workspace: WorkspaceDetail
    data_agent: DataAgentDetail
    relevance_score: int = Field(default=0, description="Relevance to the query")


class DiscoverResponse(BaseModel):
    """Response body for POST /api/v1/discover."""

    query: str
    workspace_id: str | None = None
    data_agents: list[DiscoveredDataAgent] = Field(
        default_factory=list, description="All matching data agents in discovery order"
    )
    suggested_data_agents: list[DiscoveredDataAgent] = Field(
        default_factory=list, description="Data agents mentioning the query, best first"
    )
    workspaces_with_data_agents: list[WorkspaceDetail] = Field(default_factory=list)
    discovery_summary: str = ""
    selection_guide: str = ""
