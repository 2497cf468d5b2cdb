"""HTTP transport that delivers events to the DSN store endpoint."""

from __future__ import annotations

import atexit
import logging
import queue
import threading
import time
from collections.abc import Callable

import httpx

from tracebridge.config import Options
from tracebridge.dsn import Dsn
from tracebridge.errors import QueueFullError, TransportError
from tracebridge.types import Event

logger = logging.getLogger("tracebridge.transport")

SendCallback = Callable[[Exception | None], None]

# Marks requests made by the transport so HTTP instrumentation skips them.
INTERNAL_EXTENSION = "tracebridge_internal"

_PROTOCOL_VERSION = 7
_MAX_QUEUE_SIZE = 10_000


class HttpTransport:
    """Background event delivery. Never blocks the application.

    Each event is POSTed as JSON on a daemon worker thread. The outcome is
    reported through the callback passed to ``submit``: ``None`` on success,
    a ``TransportError`` otherwise.
    """

    def __init__(
        self,
        dsn: Dsn,
        options: Options | None = None,
        *,
        http_client: httpx.Client | None = None,
        retry_backoff: float = 1.0,
        queue_size: int = _MAX_QUEUE_SIZE,
    ) -> None:
        options = options or Options()
        self._dsn = dsn
        self._url = dsn.store_url()
        self._max_retries = options.max_retries
        self._retry_backoff = retry_backoff
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=options.timeout)

        self._queue: queue.Queue[tuple[Event, SendCallback | None] | None] = queue.Queue(
            maxsize=queue_size
        )
        self._running = True
        # Guards _running so nothing is queued behind the stop marker.
        self._lock = threading.Lock()
        self._thread = threading.Thread(
            target=self._worker, name="tracebridge-transport", daemon=True
        )
        self._thread.start()
        atexit.register(self.close)

    @property
    def url(self) -> str:
        return self._url

    def submit(self, event: Event, callback: SendCallback | None = None) -> None:
        """Queue an event for delivery (non-blocking)."""
        with self._lock:
            if not self._running:
                error: TransportError = TransportError("Transport is closed")
            else:
                try:
                    self._queue.put_nowait((event, callback))
                    return
                except queue.Full:
                    logger.warning("Event queue full, dropping event %s", event.get("event_id"))
                    error = QueueFullError("Event queue is full")
        _notify(callback, error)

    def flush(self, timeout: float = 2.0) -> bool:
        """Wait until queued events are delivered. Returns False on timeout."""
        deadline = time.monotonic() + timeout
        while self._queue.unfinished_tasks:
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True

    def close(self, timeout: float = 5.0) -> None:
        """Deliver remaining events and stop the worker thread."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            try:
                self._queue.put(None, timeout=timeout)
            except queue.Full:
                logger.warning("Transport queue still full on close")
        self._thread.join(timeout=timeout)
        if self._owns_http:
            self._http.close()
        atexit.unregister(self.close)

    def _worker(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    return
                event, callback = item
                _notify(callback, self._deliver(event))
            finally:
                self._queue.task_done()

    def _deliver(self, event: Event) -> TransportError | None:
        headers = {"X-Tracebridge-Auth": self._auth_header()}
        error: TransportError | None = None

        for attempt in range(self._max_retries):
            request = self._http.build_request(
                "POST",
                self._url,
                json=event,
                headers=headers,
                extensions={INTERNAL_EXTENSION: True},
            )
            try:
                resp = self._http.send(request)
            except httpx.HTTPError as e:
                logger.debug("Send attempt %d failed: %s", attempt + 1, e)
                error = TransportError(f"Failed to send event: {e}")
                if attempt < self._max_retries - 1:
                    time.sleep(self._retry_backoff * 2**attempt)
                continue

            if resp.status_code >= 400:
                logger.warning("Event endpoint returned %d", resp.status_code)
                return TransportError(
                    f"Event endpoint returned {resp.status_code}",
                    status_code=resp.status_code,
                )
            return None

        logger.warning(
            "Dropped event %s after %d attempts", event.get("event_id"), self._max_retries
        )
        return error

    def _auth_header(self) -> str:
        parts = [
            f"tracebridge_version={_PROTOCOL_VERSION}",
            f"tracebridge_client=tracebridge-python/{sdk_version()}",
            f"tracebridge_key={self._dsn.public_key}",
        ]
        if self._dsn.secret_key:
            parts.append(f"tracebridge_secret={self._dsn.secret_key}")
        return "Tracebridge " + ", ".join(parts)


def _notify(callback: SendCallback | None, error: Exception | None) -> None:
    if callback is None:
        return
    try:
        callback(error)
    except Exception:
        logger.exception("Send callback raised")


def sdk_version() -> str:
    try:
        from tracebridge import __version__
        return __version__
    except ImportError:
        return "0.1.0"
