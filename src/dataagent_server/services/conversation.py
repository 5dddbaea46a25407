"""Conversation orchestration against a data agent's assistant API.

A query is answered by walking an ephemeral assistant conversation:

    create assistant -> create thread -> add message -> start run -> list messages

The steps are strictly sequential because each step consumes the identifier
produced by the previous one. Any failure aborts the remaining steps and the
error propagates unchanged; already created assistants and threads are left
to the service.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from dataagent_server.errors import (
    DataAgentProtocolError,
    require_non_empty,
)
from dataagent_server.fabric.client import FabricClient
from dataagent_server.services.event_stream import (
    ProgressSink,
    collect_event_stream,
    emit_progress,
)

logger = logging.getLogger(__name__)

ASSISTANT_API_VERSION = "2024-05-01-preview"
THREAD_API_VERSION = "2024-07-01-preview"
CAPACITY_HEADER = "x-ms-fabric-capacity-id"


class ConversationState(str, Enum):
    """Lifecycle of a single query's conversation."""

    IDLE = "idle"
    ASSISTANT_CREATED = "assistant_created"
    THREAD_CREATED = "thread_created"
    MESSAGE_ADDED = "message_added"
    RUN_STARTED = "run_started"
    RUN_COMPLETED = "run_completed"
    MESSAGES_RETRIEVED = "messages_retrieved"
    DONE = "done"
    FAILED = "failed"


_STATE_ORDER = [
    ConversationState.IDLE,
    ConversationState.ASSISTANT_CREATED,
    ConversationState.THREAD_CREATED,
    ConversationState.MESSAGE_ADDED,
    ConversationState.RUN_STARTED,
    ConversationState.RUN_COMPLETED,
    ConversationState.MESSAGES_RETRIEVED,
    ConversationState.DONE,
]


@dataclass
class ConversationSession:
    """Per-query conversation state. Never shared or reused."""

    assistant_id: str | None = None
    thread_id: str | None = None
    state: ConversationState = ConversationState.IDLE

    def advance(self, state: ConversationState) -> None:
        """Move to the next state; only the immediate successor is allowed."""
        current = _STATE_ORDER.index(self.state)
        if _STATE_ORDER.index(state) != current + 1:
            raise RuntimeError(
                f"Invalid conversation transition {self.state.value} -> {state.value}"
            )
        self.state = state

    def fail(self) -> None:
        self.state = ConversationState.FAILED


class AssistantsApi(Protocol):
    """The external assistant protocol, one method per step."""

    async def create_assistant(self) -> str: ...

    async def create_thread(self) -> str: ...

    async def add_message(self, thread_id: str, content: str) -> None: ...

    async def start_run(self, thread_id: str, assistant_id: str) -> str: ...

    async def stream_run(
        self,
        thread_id: str,
        assistant_id: str,
        progress: ProgressSink | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> str: ...

    async def list_messages(self, thread_id: str) -> list[str]: ...


def extract_id(payload: Any, field: str = "id") -> str:
    """Extract a non-empty string identifier from a JSON response.

    Raises:
        DataAgentProtocolError: If the field is missing, empty or not a string
    """
    value = payload.get(field) if isinstance(payload, dict) else None
    if not isinstance(value, str) or not value:
        logger.error(f"Failed to extract '{field}' from response: {payload!r}")
        raise DataAgentProtocolError(f"Failed to get '{field}' from response")
    return value


class HttpAssistantsApi:
    """AssistantsApi implementation speaking to one data agent over HTTP.

    Attributes:
        base_url: Per-agent base URL, e.g.
                  "{root}/v1/workspaces/{workspace_id}/dataagents/{agent_id}"
    """

    def __init__(self, client: FabricClient, base_url: str, capacity_id: str) -> None:
        self._client = client
        self.base_url = base_url.rstrip("/")
        self._headers = {CAPACITY_HEADER: capacity_id}

    @classmethod
    def for_agent(
        cls,
        client: FabricClient,
        api_root: str,
        workspace_id: str,
        agent_id: str,
        capacity_id: str,
    ) -> "HttpAssistantsApi":
        base_url = f"{api_root.rstrip('/')}/v1/workspaces/{workspace_id}/dataagents/{agent_id}"
        return cls(client, base_url, capacity_id)

    def _url(self, path: str, api_version: str) -> str:
        return f"{self.base_url}/{path}?api-version={api_version}"

    async def create_assistant(self) -> str:
        payload = await self._client.post_json(
            self._url("assistants", ASSISTANT_API_VERSION), headers=self._headers
        )
        return extract_id(payload)

    async def create_thread(self) -> str:
        payload = await self._client.post_json(
            self._url("threads", ASSISTANT_API_VERSION), headers=self._headers
        )
        return extract_id(payload)

    async def add_message(self, thread_id: str, content: str) -> None:
        await self._client.post_text(
            self._url(f"threads/{thread_id}/messages", THREAD_API_VERSION),
            body={"role": "user", "content": content},
            headers=self._headers,
        )

    async def start_run(self, thread_id: str, assistant_id: str) -> str:
        return await self._client.post_text(
            self._url(f"threads/{thread_id}/runs", THREAD_API_VERSION),
            body={"assistant_id": assistant_id, "stream": True},
            headers=self._headers,
        )

    async def stream_run(
        self,
        thread_id: str,
        assistant_id: str,
        progress: ProgressSink | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        async with self._client.stream_lines(
            self._url(f"threads/{thread_id}/runs", THREAD_API_VERSION),
            body={"assistant_id": assistant_id, "stream": True},
            headers=self._headers,
        ) as lines:
            return await collect_event_stream(lines, progress, cancel_event)

    async def list_messages(self, thread_id: str) -> list[str]:
        payload = await self._client.get_json(
            self._url(f"threads/{thread_id}/messages", THREAD_API_VERSION),
            headers=self._headers,
        )
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise DataAgentProtocolError("Messages response has no 'data' array")
        # Compact and unescaped, as the API sent it
        return [
            json.dumps(message, ensure_ascii=False, separators=(",", ":")) for message in data
        ]


class ConversationOrchestrator:
    """Drives one query through the assistant protocol.

    A new ConversationSession is created for every call to query(), so a
    single orchestrator may be reused for sequential queries.
    """

    def __init__(self, api: AssistantsApi) -> None:
        self._api = api
        self.session: ConversationSession | None = None

    async def query(
        self,
        workspace_id: str,
        agent_id: str,
        capacity_id: str,
        query: str,
        streaming: bool = False,
        progress: ProgressSink | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """Run a query and return the retrieved messages joined by line breaks.

        Args:
            workspace_id: Workspace hosting the data agent
            agent_id: Data agent identifier
            capacity_id: Capacity the data agent runs on
            query: Free-text question for the data agent
            streaming: Use the event-stream run instead of the buffered run
            progress: Optional sink for progress notifications (streaming only)
            cancel_event: Optional event cancelling the streaming run

        Returns:
            str: Retrieved messages, one JSON document per line, in API order

        Raises:
            DataAgentValidationError: If any input is empty (before any I/O)
            DataAgentTransportError: If an external call fails
            DataAgentProtocolError: If a response lacks an expected field
            DataAgentCancelledError: If cancel_event is set during streaming
        """
        require_non_empty(
            workspace_id=workspace_id,
            agent_id=agent_id,
            capacity_id=capacity_id,
            query=query,
        )
        if not streaming:
            progress = None

        session = ConversationSession()
        self.session = session
        mode = "streaming" if streaming else "buffered"
        logger.info(
            f"Starting {mode} query - workspace: {workspace_id}, "
            f"agent: {agent_id}, capacity: {capacity_id}"
        )

        try:
            await emit_progress(progress, "Initializing data agent query...")

            await emit_progress(progress, "Creating assistant...")
            session.assistant_id = await self._api.create_assistant()
            session.advance(ConversationState.ASSISTANT_CREATED)
            logger.debug(f"Created assistant: {session.assistant_id}")

            await emit_progress(progress, "Creating thread...")
            session.thread_id = await self._api.create_thread()
            session.advance(ConversationState.THREAD_CREATED)
            logger.debug(f"Created thread: {session.thread_id}")

            await emit_progress(progress, "Creating message in thread...")
            await self._api.add_message(session.thread_id, query)
            session.advance(ConversationState.MESSAGE_ADDED)

            await emit_progress(progress, "Starting data agent run...")
            session.advance(ConversationState.RUN_STARTED)
            if streaming:

                async def report(payload: str) -> None:
                    await emit_progress(progress, f"Received: {payload}")

                run_output = await self._api.stream_run(
                    session.thread_id, session.assistant_id, report, cancel_event
                )
            else:
                run_output = await self._api.start_run(
                    session.thread_id, session.assistant_id
                )
            session.advance(ConversationState.RUN_COMPLETED)
            logger.debug(f"Run completed with {len(run_output)} characters of output")

            await emit_progress(progress, "Retrieving final results...")
            messages = await self._api.list_messages(session.thread_id)
            session.advance(ConversationState.MESSAGES_RETRIEVED)

            result = "\n".join(messages)
            session.advance(ConversationState.DONE)
            await emit_progress(progress, "Query completed successfully.")
            logger.info(f"Query completed with {len(messages)} messages")
            return result

        except Exception as e:
            session.fail()
            await emit_progress(progress, f"Error: {e}")
            logger.error(
                f"Failed to query data agent '{agent_id}' in workspace "
                f"'{workspace_id}' with capacity '{capacity_id}': {e}"
            )
            raise
