"""Pydantic models for workspace and data agent listing responses.

This module contains response schemas for the /api/v1/workspaces endpoints.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class WorkspaceDetail(BaseModel):
    """A workspace as returned by the API."""

    id: str = Field(..., description="Workspace identifier")
    name: str = Field(..., description="Workspace name")
    display_name: str = Field(..., description="Name combined with description")
    description: str | None = Field(default=None, description="Workspace description")
    capacity_id: str | None = Field(default=None, description="Assigned capacity")
    type: str = Field(..., description="Workspace type")
    state: str = Field(..., description="Workspace state")
    is_active: bool = Field(..., description="Whether the workspace is active")

    model_config = ConfigDict(from_attributes=True)


class DataAgentDetail(BaseModel):
    """A data agent as returned by the API."""

    id: str = Field(..., description="Data agent identifier")
    name: str = Field(..., description="Data agent name")
    display_name: str = Field(..., description="Name combined with description")
    description: str | None = Field(default=None, description="Data agent description")
    workspace_id: str = Field(..., description="Owning workspace")
    type: str = Field(..., description="Inventory item type")
    state: str = Field(..., description="Data agent state")
    is_active: bool = Field(..., description="Whether the data agent can be queried")
    created_date: datetime = Field(..., description="Creation time")
    modified_date: datetime = Field(..., description="Last modification time")
    tags: list[str] | None = Field(default=None, description="Data agent tags")
    summary: str = Field(..., description="One-line description")

    model_config = ConfigDict(from_attributes=True)


class WorkspaceListResponse(BaseModel):
    """Response model for listing workspaces."""

    workspaces: list[WorkspaceDetail] = Field(..., description="Visible workspaces")


class DataAgentListResponse(BaseModel):
    """Response model for listing the data agents of a workspace."""

    workspace_id: str = Field(..., description="Workspace that was listed")
    data_agents: list[DataAgentDetail] = Field(..., description="Data agents found")
