"""Business logic services for dataagent-server.

This package contains the conversation orchestrator, the event stream
decoder, inventory listing and discovery, and the DataAgentService facade
that ties them together.
"""

from dataagent_server.services.conversation import (
    AssistantsApi,
    ConversationOrchestrator,
    ConversationSession,
    ConversationState,
    HttpAssistantsApi,
)
from dataagent_server.services.data_agents import DataAgentService, QueryUpdate
from dataagent_server.services.discovery import (
    DiscoveryResult,
    DiscoveryService,
    discover_data_agents,
    rank_data_agents,
    relevance_score,
)
from dataagent_server.services.event_stream import collect_event_stream, iter_event_stream
from dataagent_server.services.resources import ResourceLister

__all__ = [
    "AssistantsApi",
    "ConversationOrchestrator",
    "ConversationSession",
    "ConversationState",
    "DataAgentService",
    "DiscoveryResult",
    "DiscoveryService",
    "HttpAssistantsApi",
    "QueryUpdate",
    "ResourceLister",
    "collect_event_stream",
    "discover_data_agents",
    "iter_event_stream",
    "rank_data_agents",
    "relevance_score",
]
