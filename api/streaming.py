"""Bridge a pipeline run onto a Server-Sent Events response."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
import logging

from fastapi.responses import StreamingResponse

from core.events import EventChannel, encode_sse

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

# Strong references so in-flight runs are not garbage collected.
_background_runs: set[asyncio.Task] = set()


async def sse_events(start: Callable[[EventChannel], Awaitable[None]]) -> AsyncIterator[str]:
    """Run ``start(channel)`` as its own task and yield its events as SSE frames.

    When the client goes away the receive stream is closed; the run notices on
    its next emission and winds down without further output.
    """
    channel, receive = EventChannel.open()

    async def _run() -> None:
        try:
            await start(channel)
        finally:
            channel.close()

    task = asyncio.create_task(_run())
    _background_runs.add(task)
    task.add_done_callback(_background_runs.discard)
    async with receive:
        async for event in receive:
            yield encode_sse(event)
    logger.debug("sse.closed emitted=%s connected=%s", channel.emitted, channel.connected)


def sse_response(start: Callable[[EventChannel], Awaitable[None]]) -> StreamingResponse:
    return StreamingResponse(
        sse_events(start), media_type="text/event-stream", headers=SSE_HEADERS
    )
