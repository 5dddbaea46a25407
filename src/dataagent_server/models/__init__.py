"""Pydantic models for API request and response schemas.

This package contains all Pydantic models used for validating and
serializing API requests and responses across all endpoints.
"""

from dataagent_server.models.discovery import (
    DiscoveredDataAgent,
    DiscoverRequest,
    DiscoverResponse,
)
from dataagent_server.models.options import RetryPolicyOptions
from dataagent_server.models.query import QueryRequest, QueryResponse
from dataagent_server.models.workspaces import (
    DataAgentDetail,
    DataAgentListResponse,
    WorkspaceDetail,
    WorkspaceListResponse,
)

__all__ = [
    "DataAgentDetail",
    "DataAgentListResponse",
    "DiscoverRequest",
    "DiscoverResponse",
    "DiscoveredDataAgent",
    "QueryRequest",
    "QueryResponse",
    "RetryPolicyOptions",
    "WorkspaceDetail",
    "WorkspaceListResponse",
]
