"""FastAPI routers for API endpoints.

This package contains all route handlers organized by resource type.
Each router module defines endpoints for a specific domain (health, workspaces, discovery, query).
"""

from dataagent_server.routers import discovery, health, query, workspaces

__all__ = [
    "discovery",
    "health",
    "query",
    "workspaces",
]
