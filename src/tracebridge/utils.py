"""Helpers for detached (fire-and-forget) async work."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from collections.abc import Awaitable
from typing import Any

logger = logging.getLogger("tracebridge.utils")

# Strong references to detached tasks so they are not garbage collected mid-flight.
_pending: set[asyncio.Task[Any]] = set()


async def _guarded(awaitable: Awaitable[Any]) -> Any:
    try:
        return await awaitable
    except Exception:
        logger.exception("Detached task failed")
        return None


def forget(
    awaitable: Awaitable[Any],
    loop: asyncio.AbstractEventLoop | None = None,
) -> asyncio.Task[Any] | concurrent.futures.Future[Any] | None:
    """Run ``awaitable`` without waiting for it.

    Failures are logged and never propagate to the caller. When called from a
    thread without a running loop, the work is handed to ``loop`` (if it is
    still running). Otherwise the awaitable is dropped with a warning.
    """
    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None

    if running is not None and (loop is None or loop is running):
        task = running.create_task(_guarded(awaitable))
        _pending.add(task)
        task.add_done_callback(_pending.discard)
        return task

    if loop is not None and loop.is_running() and not loop.is_closed():
        return asyncio.run_coroutine_threadsafe(_guarded(awaitable), loop)

    logger.warning("No running event loop, dropping detached work: %r", awaitable)
    if asyncio.iscoroutine(awaitable):
        awaitable.close()
    return None
