"""dataagent-server: Headless FastAPI server for Fabric data agents.

This package provides a REST API and SSE streaming interface for listing
workspaces, discovering data agents and querying them through their
assistant API.
"""

__version__ = "0.1.0"

from dataagent_server.app import create_app  # noqa: E402

__all__ = ["create_app", "__version__"]
