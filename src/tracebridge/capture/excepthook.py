"""Automatic capture of unhandled exceptions."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Callable
from types import TracebackType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tracebridge.capture.client import CaptureClient

logger = logging.getLogger("tracebridge.capture")

_client: CaptureClient | None = None
_original_excepthook: Callable[..., Any] | None = None


def install(client: CaptureClient) -> None:
    """Install a global exception hook that captures unhandled exceptions."""
    global _client, _original_excepthook
    if _original_excepthook is None:
        _original_excepthook = sys.excepthook
    _client = client
    sys.excepthook = _tracebridge_excepthook


def uninstall() -> None:
    """Restore the exception hook that was active before ``install``."""
    global _client, _original_excepthook
    if _original_excepthook is not None:
        sys.excepthook = _original_excepthook
    _original_excepthook = None
    _client = None


def _tracebridge_excepthook(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_tb: TracebackType | None,
) -> None:
    """Exception hook that captures the exception, then calls the original."""
    if _client is not None and not issubclass(exc_type, KeyboardInterrupt):
        try:
            _client.capture_exception(exc_value)
        except Exception:
            logger.exception("Failed to capture unhandled exception")
    (_original_excepthook or sys.__excepthook__)(exc_type, exc_value, exc_tb)


def install_loop_handler(client: CaptureClient, loop: asyncio.AbstractEventLoop) -> Any:
    """Capture exceptions nobody retrieved from tasks and futures on ``loop``.

    The previously set handler (or the loop's default) still runs afterwards.
    Returns that previous handler so the caller can put it back.
    """
    previous = loop.get_exception_handler()

    def _handler(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        if isinstance(exc, Exception):
            try:
                client.capture_exception(exc)
            except Exception:
                logger.exception("Failed to capture unhandled task exception")
        if previous is not None:
            previous(loop, context)
        else:
            loop.default_exception_handler(context)

    loop.set_exception_handler(_handler)
    return previous
