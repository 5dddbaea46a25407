"""Query API endpoints.

This module provides endpoints for querying a data agent, both as a single
JSON response and as a Server-Sent Events stream of progress updates.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse

from dataagent_server.dependencies import get_data_agent_service
from dataagent_server.errors import DataAgentError, require_non_empty
from dataagent_server.models.query import (
    DoneEvent,
    ErrorEvent,
    ProgressEvent,
    QueryRequest,
    QueryResponse,
    ResultEvent,
)
from dataagent_server.routers.errors import error_details, to_http_exception
from dataagent_server.services import DataAgentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/query", tags=["query"])


def _validate(request_body: QueryRequest) -> None:
    require_non_empty(
        workspace_id=request_body.workspace_id,
        agent_id=request_body.agent_id,
        capacity_id=request_body.capacity_id,
        query=request_body.query,
    )


@router.post("", response_model=QueryResponse)
async def query_data_agent(
    request_body: QueryRequest,
    service: DataAgentService = Depends(get_data_agent_service),
) -> QueryResponse:
    """Query a data agent and return the complete result.

    With enable_streaming set, the run is executed as an event stream and
    its progress is logged; the response is still returned in one piece.

    Args:
        request_body: Query request with workspace, agent, capacity and query
        service: Injected DataAgentService

    Returns:
        QueryResponse with the retrieved thread messages

    Raises:
        HTTPException: 400 on empty inputs, 502 if the data agent call fails
    """
    try:
        _validate(request_body)

        if request_body.enable_streaming:
            logger.info("Executing data agent query with streaming enabled")

            def log_progress(message: str) -> None:
                logger.info(f"Data Agent Progress: {message}")

            result = await service.query_agent_streaming(
                request_body.workspace_id,
                request_body.agent_id,
                request_body.capacity_id,
                request_body.query,
                retry_policy=request_body.retry_policy,
                progress=log_progress,
            )
        else:
            logger.info("Executing data agent query without streaming")
            result = await service.query_agent(
                request_body.workspace_id,
                request_body.agent_id,
                request_body.capacity_id,
                request_body.query,
                retry_policy=request_body.retry_policy,
            )
    except DataAgentError as e:
        raise to_http_exception(e)

    return QueryResponse(query_result=result)


@router.post("/stream")
async def query_data_agent_streaming(
    request_body: QueryRequest,
    request: Request,
    service: DataAgentService = Depends(get_data_agent_service),
) -> EventSourceResponse:
    """Stream a data agent query via Server-Sent Events (SSE).

    SSE Events:
        - progress: Each progress notification, including run payloads
        - result: The retrieved thread messages once the query completes
        - error: If the query fails
        - done: Stream is complete

    Raises:
        HTTPException: 400 on empty inputs (before the stream starts)
    """
    try:
        _validate(request_body)
    except DataAgentError as e:
        raise to_http_exception(e)

    logger.info(f"Starting streaming query for data agent {request_body.agent_id}")

    async def event_generator():
        """Generate SSE events from the streaming query."""
        cancel_event = asyncio.Event()
        updates = service.stream_query(
            request_body.workspace_id,
            request_body.agent_id,
            request_body.capacity_id,
            request_body.query,
            retry_policy=request_body.retry_policy,
            cancel_event=cancel_event,
        )

        try:
            async for update in updates:
                if await request.is_disconnected():
                    logger.warning(
                        f"Client disconnected during query of data agent {request_body.agent_id}"
                    )
                    cancel_event.set()
                    return

                if update.kind == "progress":
                    yield {
                        "event": "progress",
                        "data": ProgressEvent(message=update.text).model_dump_json(),
                    }
                else:
                    yield {
                        "event": "result",
                        "data": ResultEvent(query_result=update.text).model_dump_json(),
                    }

            yield {
                "event": "done",
                "data": DoneEvent(agent_id=request_body.agent_id).model_dump_json(),
            }

        except DataAgentError as e:
            logger.error(f"Error during streaming query of {request_body.agent_id}: {e}")
            error_event = ErrorEvent(
                code=f"{e.kind.value}_error",
                message=str(e),
                details=error_details(e),
            )
            yield {
                "event": "error",
                "data": error_event.model_dump_json(),
            }
        finally:
            await updates.aclose()

    return EventSourceResponse(event_generator())
