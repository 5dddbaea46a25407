"""Data agent operations consumed by the HTTP layer.

DataAgentService is the single entry point for querying, listing and
discovering data agents. It wires the shared FabricClient into the
conversation orchestrator, the resource lister and the discovery service.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Callable

from dataagent_server.fabric.client import FabricClient
from dataagent_server.fabric.types import DataAgentInfo, WorkspaceInfo
from dataagent_server.models.options import RetryPolicyOptions
from dataagent_server.services.conversation import (
    AssistantsApi,
    ConversationOrchestrator,
    HttpAssistantsApi,
)
from dataagent_server.services.discovery import DiscoveryResult, DiscoveryService
from dataagent_server.services.event_stream import ProgressSink
from dataagent_server.services.resources import ResourceLister

logger = logging.getLogger(__name__)

AssistantsApiFactory = Callable[[str, str, str], AssistantsApi]

_PROGRESS_QUEUE_SIZE = 32


@dataclass(frozen=True)
class QueryUpdate:
    """One item of a streaming query.

    Attributes:
        kind: "progress" for incremental notifications, "result" for the
              final aggregated text (always the last item)
        text: Progress message or result text
    """

    kind: str
    text: str


class DataAgentService:
    """Query, list and discover data agents.

    Attributes:
        assistant_api_root: Root URL of the per-agent assistant API
    """

    def __init__(
        self,
        client: FabricClient,
        inventory_root: str,
        assistant_api_root: str,
        assistants_api_factory: AssistantsApiFactory | None = None,
    ) -> None:
        self._client = client
        self.assistant_api_root = assistant_api_root
        self._lister = ResourceLister(client, inventory_root)
        self._discovery = DiscoveryService(self._lister)
        self._assistants_api_factory = assistants_api_factory or self._http_assistants_api

    def _http_assistants_api(
        self, workspace_id: str, agent_id: str, capacity_id: str
    ) -> AssistantsApi:
        return HttpAssistantsApi.for_agent(
            self._client, self.assistant_api_root, workspace_id, agent_id, capacity_id
        )

    def _orchestrator(
        self, workspace_id: str, agent_id: str, capacity_id: str
    ) -> ConversationOrchestrator:
        return ConversationOrchestrator(
            self._assistants_api_factory(workspace_id, agent_id, capacity_id)
        )

    async def query_agent(
        self,
        workspace_id: str,
        agent_id: str,
        capacity_id: str,
        query: str,
        retry_policy: RetryPolicyOptions | None = None,
    ) -> str:
        """Query a data agent and wait for the full answer."""
        orchestrator = self._orchestrator(workspace_id, agent_id, capacity_id)
        return await orchestrator.query(
            workspace_id, agent_id, capacity_id, query, streaming=False
        )

    async def query_agent_streaming(
        self,
        workspace_id: str,
        agent_id: str,
        capacity_id: str,
        query: str,
        retry_policy: RetryPolicyOptions | None = None,
        progress: ProgressSink | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """Query a data agent using a streaming run, reporting progress."""
        orchestrator = self._orchestrator(workspace_id, agent_id, capacity_id)
        return await orchestrator.query(
            workspace_id,
            agent_id,
            capacity_id,
            query,
            streaming=True,
            progress=progress,
            cancel_event=cancel_event,
        )

    async def stream_query(
        self,
        workspace_id: str,
        agent_id: str,
        capacity_id: str,
        query: str,
        retry_policy: RetryPolicyOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncIterator[QueryUpdate]:
        """Run a streaming query as an async iterator of updates.

        Progress notifications are passed through a bounded queue, so a slow
        consumer holds back the decoder instead of buffering without limit.
        Closing the iterator early cancels the underlying query.

        Yields:
            QueryUpdate: Progress updates in order, then one "result" update

        Raises:
            DataAgentError: Any failure of the underlying query
        """
        queue: asyncio.Queue[QueryUpdate] = asyncio.Queue(_PROGRESS_QUEUE_SIZE)

        async def report(message: str) -> None:
            await queue.put(QueryUpdate(kind="progress", text=message))

        task = asyncio.create_task(
            self.query_agent_streaming(
                workspace_id,
                agent_id,
                capacity_id,
                query,
                retry_policy=retry_policy,
                progress=report,
                cancel_event=cancel_event,
            )
        )
        getter: asyncio.Future | None = None
        try:
            while True:
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait(
                    {getter, task}, return_when=asyncio.FIRST_COMPLETED
                )
                if getter not in done:
                    getter.cancel()
                    break
                yield getter.result()

            # The query finished; hand out whatever it reported last.
            while not queue.empty():
                yield queue.get_nowait()
            yield QueryUpdate(kind="result", text=await task)
        finally:
            if getter is not None and not getter.done():
                getter.cancel()
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    logger.debug("Streaming query task cancelled after consumer closed")

    async def list_workspaces(
        self, retry_policy: RetryPolicyOptions | None = None
    ) -> list[WorkspaceInfo]:
        return await self._lister.list_workspaces()

    async def list_agents(
        self, workspace_id: str, retry_policy: RetryPolicyOptions | None = None
    ) -> list[DataAgentInfo]:
        return await self._lister.list_data_agents(workspace_id)

    async def discover_agents(
        self,
        query: str,
        workspace_id: str | None = None,
        workspace_name: str | None = None,
        agent_name: str | None = None,
        retry_policy: RetryPolicyOptions | None = None,
    ) -> DiscoveryResult:
        """Find data agents across workspaces relevant to a query."""
        return await self._discovery.discover(
            query,
            workspace_id=workspace_id,
            workspace_name=workspace_name,
            agent_name=agent_name,
        )
