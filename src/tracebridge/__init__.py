"""tracebridge - error reporting SDK for Python applications."""

from __future__ import annotations

from typing import Any

from tracebridge.backend import CaptureBackend
from tracebridge.capture.client import CaptureClient, get_client
from tracebridge.config import Options, load_options
from tracebridge.dsn import Dsn
from tracebridge.errors import (
    DsnError,
    InvariantError,
    NotConfiguredError,
    QueueFullError,
    TracebridgeError,
    TransportError,
)
from tracebridge.frontend import Frontend

__version__ = "0.1.0"


def capture_exception(exc: BaseException | None = None) -> str | None:
    """Capture an exception (defaults to the one being handled)."""
    return get_client().capture_exception(exc)


def capture_message(message: str, level: str = "info") -> str:
    """Capture a plain message."""
    return get_client().capture_message(message, level=level)


def add_breadcrumb(
    category: str,
    message: str,
    level: str = "info",
    data: dict[str, Any] | None = None,
) -> None:
    """Add a breadcrumb to the current trail."""
    get_client().record_breadcrumb(category, message, level=level, data=data)


def flush(timeout: float = 2.0) -> bool:
    """Wait for queued events to be delivered."""
    return get_client().flush(timeout)


__all__ = [
    "CaptureBackend",
    "CaptureClient",
    "Dsn",
    "DsnError",
    "Frontend",
    "InvariantError",
    "NotConfiguredError",
    "Options",
    "QueueFullError",
    "TracebridgeError",
    "TransportError",
    "__version__",
    "add_breadcrumb",
    "capture_exception",
    "capture_message",
    "flush",
    "get_client",
    "load_options",
]
