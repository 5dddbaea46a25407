"""Fabric API client wrapper and integration layer.

This package provides the authenticated async HTTP client, credential
providers, and the immutable workspace/data agent snapshots.
"""

from dataagent_server.fabric.client import FabricClient
from dataagent_server.fabric.credentials import CredentialProvider, StaticTokenProvider
from dataagent_server.fabric.types import DataAgentInfo, WorkspaceInfo

__all__ = [
    "CredentialProvider",
    "DataAgentInfo",
    "FabricClient",
    "StaticTokenProvider",
    "WorkspaceInfo",
]
