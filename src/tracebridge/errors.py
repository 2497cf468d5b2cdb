"""Exception hierarchy for the tracebridge SDK."""

from __future__ import annotations


class TracebridgeError(Exception):
    """Base class for all SDK errors."""


class InvariantError(TracebridgeError):
    """Raised when the SDK is driven in a way its callers must never do."""


class DsnError(TracebridgeError, ValueError):
    """Raised when a DSN string cannot be parsed."""


class NotConfiguredError(TracebridgeError):
    """Raised when the capture client is used before ``config()``."""


class TransportError(TracebridgeError):
    """Raised (or passed to send callbacks) when an event could not be delivered."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class QueueFullError(TransportError):
    """The transport queue is full and the event was dropped."""
