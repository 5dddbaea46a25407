"""Decoding of `data: ` event streams returned by streaming runs.

The run endpoint answers a streaming request with a text/event-stream body
made of ``data: <payload>`` lines and a literal ``data: [DONE]`` terminator.
This module turns such a line stream into ordered payload chunks, and
aggregates those chunks into a single text result.
"""

import asyncio
import inspect
import logging
from typing import AsyncIterable, AsyncIterator, Awaitable, Callable

from dataagent_server.errors import DataAgentCancelledError

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_MARKER = "[DONE]"

ProgressSink = Callable[[str], Awaitable[None] | None]


async def iter_event_stream(
    lines: AsyncIterable[str],
    cancel_event: asyncio.Event | None = None,
) -> AsyncIterator[str]:
    """Yield the payload of each ``data: `` line in arrival order.

    Lines without the prefix are skipped. The ``[DONE]`` marker is never
    yielded.

    Args:
        lines: Response body as an async iterable of lines
        cancel_event: Optional event; when set, decoding stops

    Yields:
        str: One payload per matching line

    Raises:
        DataAgentCancelledError: If cancel_event is set while decoding
    """
    async for line in lines:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Event stream decoding cancelled by caller")
            raise DataAgentCancelledError("Streaming query was cancelled")

        if not line.startswith(DATA_PREFIX):
            continue

        payload = line[len(DATA_PREFIX):]
        if payload == DONE_MARKER:
            logger.debug("Received end-of-stream marker")
            continue

        yield payload


async def emit_progress(progress: ProgressSink | None, message: str) -> None:
    """Send a message to a sync or async progress sink, if any."""
    if progress is None:
        return
    result = progress(message)
    if inspect.isawaitable(result):
        await result


async def collect_event_stream(
    lines: AsyncIterable[str],
    progress: ProgressSink | None = None,
    cancel_event: asyncio.Event | None = None,
) -> str:
    """Aggregate an event stream into one text result.

    Each payload is appended to the result followed by a line break and
    reported to the progress sink exactly once.

    Args:
        lines: Response body as an async iterable of lines
        progress: Optional callable receiving each payload
        cancel_event: Optional event; when set, decoding stops

    Returns:
        str: All payloads, each terminated by "\\n"

    Raises:
        DataAgentCancelledError: If cancel_event is set while decoding
    """
    parts: list[str] = []
    async for payload in iter_event_stream(lines, cancel_event):
        parts.append(payload + "\n")
        await emit_progress(progress, payload)

    logger.debug(f"Event stream completed with {len(parts)} payloads")
    return "".join(parts)
