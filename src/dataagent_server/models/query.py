"""Pydantic models for data agent query requests, responses and SSE events."""

from pydantic import BaseModel, ConfigDict, Field

from dataagent_server.models.options import RetryPolicyOptions


class QueryRequest(BaseModel):
    """Request body for the query endpoints.

    Used by both POST /api/v1/query and POST /api/v1/query/stream.
    """

    workspace_id: str = Field(..., description="The ID of the workspace hosting the data agent")
    agent_id: str = Field(..., description="The ID of the data agent to query")
    capacity_id: str = Field(..., description="The capacity ID for the data agent query")
    query: str = Field(..., description="The query to send to the data agent")
    enable_streaming: bool = Field(
        default=False,
        description="Use a streaming run (only affects POST /api/v1/query)",
    )
    retry_policy: RetryPolicyOptions | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "workspace_id": "5f0c2a5e-...",
                    "agent_id": "b71e9e36-...",
                    "capacity_id": "0e8d4c1a-...",
                    "query": "What were total sales last quarter?",
                    "enable_streaming": False,
                }
            ]
        }
    )


class QueryResponse(BaseModel):
    """Response body for POST /api/v1/query."""

    query_result: str = Field(description="Retrieved thread messages, one per line")


class ProgressEvent(BaseModel):
    """Payload of the SSE progress event."""

    message: str


class ResultEvent(BaseModel):
    """Payload of the SSE result event."""

    query_result: str


class DoneEvent(BaseModel):
    """Payload of the SSE done event."""

    agent_id: str


class ErrorEvent(BaseModel):
    """Payload of the SSE error event."""

    code: str
    message: str
    details: dict = Field(default_factory=dict)
