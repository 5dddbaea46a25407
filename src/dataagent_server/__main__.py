"""CLI entry point for dataagent-server.

This module provides the command-line interface for starting the dataagent-server.
It can be invoked as `dataagent-server` (via the script entry point) or
`python -m dataagent_server`.
"""

import argparse
import logging
import sys

import uvicorn

from dataagent_server import __version__, create_app
from dataagent_server.config import DataAgentServerSettings


def main() -> None:
    """Main entry point for the dataagent-server CLI.

    Parses command-line arguments and starts the uvicorn server with the
    FastAPI application.
    """
    parser = argparse.ArgumentParser(
        prog="dataagent-server",
        description="Headless FastAPI server for discovering and querying Fabric data agents",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"dataagent-server {__version__}",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind the server to (default: 127.0.0.1, can be set via DATAAGENT_HOST)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind the server to (default: 8000, can be set via DATAAGENT_PORT)",
    )

    parser.add_argument(
        "--inventory-api-root",
        type=str,
        default=None,
        help="Inventory API root URL (can be set via DATAAGENT_INVENTORY_API_ROOT)",
    )

    parser.add_argument(
        "--assistant-api-root",
        type=str,
        default=None,
        help="Assistant API root URL (can be set via DATAAGENT_ASSISTANT_API_ROOT)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO, can be set via DATAAGENT_LOG_LEVEL)",
    )

    args = parser.parse_args()

    # Build settings, CLI args override environment variables
    settings_kwargs = {}
    if args.host is not None:
        settings_kwargs["host"] = args.host
    if args.port is not None:
        settings_kwargs["port"] = args.port
    if args.inventory_api_root is not None:
        settings_kwargs["inventory_api_root"] = args.inventory_api_root
    if args.assistant_api_root is not None:
        settings_kwargs["assistant_api_root"] = args.assistant_api_root
    if args.log_level is not None:
        settings_kwargs["log_level"] = args.log_level

    settings = DataAgentServerSettings(**settings_kwargs)
    logging.basicConfig(level=settings.log_level.upper())

    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    sys.exit(main())
