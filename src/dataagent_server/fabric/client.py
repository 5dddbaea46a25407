"""Async HTTP client wrapper for Fabric APIs.

This module provides an authenticated wrapper around httpx.AsyncClient used
by both the inventory listing and the assistant conversation protocol. The
underlying httpx client is created once at startup and shared; this wrapper
adds the bearer token, common headers, and maps httpx failures onto the
DataAgentError family.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from dataagent_server.errors import DataAgentProtocolError, DataAgentTransportError
from dataagent_server.fabric.credentials import CredentialProvider

logger = logging.getLogger(__name__)


class FabricClient:
    """Authenticated async client for Fabric REST endpoints.

    Attributes:
        scope: Token scope requested from the credential provider
        user_agent: User-Agent header sent with every request
        _http: The shared httpx.AsyncClient instance
        _credentials: Source of bearer tokens
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        credentials: CredentialProvider,
        scope: str,
        user_agent: str,
    ) -> None:
        self._http = http_client
        self._credentials = credentials
        self.scope = scope
        self.user_agent = user_agent

    async def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        token = await self._credentials.get_token(self.scope)
        headers = {
            "Authorization": f"Bearer {token}",
            "User-Agent": self.user_agent,
        }
        if extra:
            headers.update(extra)
        return headers

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        """Raise DataAgentTransportError for a non-success response."""
        if response.is_success:
            return
        request = response.request
        logger.error(
            f"{request.method} {request.url} failed with status {response.status_code}"
        )
        raise DataAgentTransportError(
            f"{request.method} {request.url.path} returned HTTP {response.status_code}",
            status_code=response.status_code,
        )

    @staticmethod
    def _decode_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DataAgentProtocolError(
                f"Response from {response.request.url.path} is not valid JSON", e
            ) from e

    async def _send(
        self,
        method: str,
        url: str,
        body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        request_headers = await self._headers(headers)
        content: dict[str, Any] = {}
        if body is not None:
            content["json"] = body
        elif method != "GET":
            # Body-less POSTs still declare a JSON payload
            request_headers["Content-Type"] = "application/json"
            content["content"] = b""

        try:
            response = await self._http.request(
                method, url, headers=request_headers, **content
            )
        except httpx.RequestError as e:
            raise DataAgentTransportError(f"Connection error: {e}", cause=e) from e

        self._raise_for_status(response)
        return response

    async def get_json(self, url: str, headers: dict[str, str] | None = None) -> Any:
        """Send a GET request and decode the JSON body.

        Raises:
            DataAgentTransportError: On connection failure or non-success status
            DataAgentProtocolError: If the body is not valid JSON
        """
        logger.debug(f"GET {url}")
        response = await self._send("GET", url, headers=headers)
        return self._decode_json(response)

    async def post_json(
        self,
        url: str,
        body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send a POST request and decode the JSON body."""
        logger.debug(f"POST {url}")
        response = await self._send("POST", url, body, headers)
        return self._decode_json(response)

    async def post_text(
        self,
        url: str,
        body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        """Send a POST request and return the body verbatim."""
        logger.debug(f"POST {url} (raw body)")
        response = await self._send("POST", url, body, headers)
        return response.text

    @asynccontextmanager
    async def stream_lines(
        self,
        url: str,
        body: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> AsyncIterator[AsyncIterator[str]]:
        """POST a request and expose the response body as an async line iterator.

        The response status is checked before any line is yielded. The
        connection is released when the context exits, whether the stream
        was fully consumed, failed, or was cancelled.

        Example:
            >>> async with client.stream_lines(url, {"stream": True}) as lines:
            ...     async for line in lines:
            ...         print(line)
        """
        request_headers = await self._headers(
            {"Accept": "text/event-stream", "Cache-Control": "no-cache", **(headers or {})}
        )
        logger.debug(f"POST {url} (event stream)")
        try:
            async with self._http.stream(
                "POST", url, json=body, headers=request_headers
            ) as response:
                if not response.is_success:
                    await response.aread()
                self._raise_for_status(response)
                yield response.aiter_lines()
        except httpx.RequestError as e:
            raise DataAgentTransportError(f"Connection error: {e}", cause=e) from e
        finally:
            logger.debug(f"Event stream from {url} closed")
