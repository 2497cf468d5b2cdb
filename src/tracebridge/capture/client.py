"""Capture client: turns the running process's activity into breadcrumbs and events."""

from __future__ import annotations

import logging
import sys
import traceback
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from tracebridge.capture.breadcrumbs import BreadcrumbTrail, make_breadcrumb
from tracebridge.capture.transport import HttpTransport, SendCallback, sdk_version
from tracebridge.config import Options
from tracebridge.dsn import Dsn
from tracebridge.errors import NotConfiguredError
from tracebridge.types import Breadcrumb, Event

logger = logging.getLogger("tracebridge.capture")

BreadcrumbHook = Callable[[Breadcrumb], None]
SendHook = Callable[[Event], None]
TransportFactory = Callable[[Dsn, Options], Any]


class CaptureClient:
    """Low-level capture library.

    Breadcrumbs and events it produces go through two hook slots. With no
    hook registered, breadcrumbs are kept in a bounded trail and events are
    transmitted straight away through ``send``.

    Typical use::

        client = CaptureClient().config("https://key@host/1", options).install()
        client.capture_message("deploy finished")
    """

    def __init__(self, transport_factory: TransportFactory | None = None) -> None:
        self._transport_factory = transport_factory or HttpTransport
        self._transport: Any = None
        self._dsn: Dsn | None = None
        self._options: Options | None = None
        self._trail = BreadcrumbTrail()
        self._breadcrumb_hook: BreadcrumbHook | None = None
        self._send_hook: SendHook | None = None
        self._installed = False
        self._patched_httpx = False

    @property
    def dsn(self) -> Dsn | None:
        return self._dsn

    @property
    def options(self) -> Options | None:
        return self._options

    @property
    def installed(self) -> bool:
        return self._installed

    def config(self, dsn: str | Dsn, options: Options | None = None) -> CaptureClient:
        """Set the destination and options. Returns self for chaining."""
        parsed = dsn if isinstance(dsn, Dsn) else Dsn.parse(str(dsn))
        if self._transport is not None:
            self._transport.close()

        self._dsn = parsed
        self._options = options or Options()
        self._trail.resize(self._options.max_breadcrumbs)
        self._transport = self._transport_factory(parsed, self._options)
        return self

    def install(self) -> CaptureClient:
        """Activate automatic instrumentation. Safe to call more than once."""
        if self._dsn is None or self._options is None:
            raise NotConfiguredError("config() must be called before install()")
        if self._installed:
            return self

        if self._options.auto_instrument_httpx:
            from tracebridge.capture.http import patch_httpx

            patch_httpx(self)
            self._patched_httpx = True

        self._installed = True
        logger.debug("Capture client installed for %s", self._dsn.netloc)
        return self

    # -- hook slots ---------------------------------------------------------

    def on_breadcrumb(self, hook: BreadcrumbHook | None) -> None:
        """Claim every breadcrumb the client produces. ``None`` restores the trail."""
        self._breadcrumb_hook = hook

    def on_send(self, hook: SendHook | None) -> None:
        """Claim every event the client would transmit. ``None`` restores ``send``."""
        self._send_hook = hook

    # -- breadcrumbs --------------------------------------------------------

    def capture_breadcrumb(self, breadcrumb: Breadcrumb) -> None:
        hook = self._breadcrumb_hook
        if hook is not None:
            hook(breadcrumb)
            return
        self._trail.add(breadcrumb)

    def record_breadcrumb(
        self,
        category: str,
        message: str,
        level: str = "info",
        data: dict[str, Any] | None = None,
    ) -> None:
        """Build a breadcrumb and capture it."""
        self.capture_breadcrumb(make_breadcrumb(category, message, level, data))

    def get_breadcrumbs(self) -> list[Breadcrumb]:
        """Breadcrumbs held in the client's own trail."""
        return self._trail.get()

    # -- events -------------------------------------------------------------

    def capture_exception(self, exc: BaseException | None = None) -> str | None:
        """Capture an exception with its stack. Returns the event id."""
        if exc is None:
            exc = sys.exc_info()[1]
        if exc is None:
            return None

        event = self._build_event("error")
        event["message"] = f"{type(exc).__name__}: {exc}"
        event["exception"] = _exception_payload(exc)
        return self._dispatch(event)

    def capture_message(self, message: str, level: str = "info") -> str:
        """Capture a plain message. Returns the event id."""
        event = self._build_event(level)
        event["message"] = message
        return self._dispatch(event)

    def send(self, event: Event, callback: SendCallback | None = None) -> None:
        """Transmit ``event`` now, bypassing the send hook.

        ``callback`` receives ``None`` on success or the error that stopped
        delivery. It may run on the transport's worker thread.
        """
        if self._transport is None:
            error = NotConfiguredError("config() must be called before send()")
            if callback is None:
                logger.warning("Dropping event %s: %s", event.get("event_id"), error)
            else:
                callback(error)
            return
        self._transport.submit(event, callback)

    def flush(self, timeout: float = 2.0) -> bool:
        if self._transport is None:
            return True
        return self._transport.flush(timeout)

    def close(self) -> None:
        """Stop the transport and undo instrumentation."""
        if self._patched_httpx:
            from tracebridge.capture.http import unpatch_httpx

            unpatch_httpx()
            self._patched_httpx = False
        if self._transport is not None:
            self._transport.close()
            self._transport = None
        self._installed = False

    def _build_event(self, level: str) -> Event:
        event: Event = {
            "event_id": uuid4().hex,
            "timestamp": datetime.now(UTC).isoformat(),
            "level": level,
            "platform": "python",
            "sdk": {"name": "tracebridge-python", "version": sdk_version()},
        }
        if self._options is not None:
            event.update(self._options.event_defaults())
        return event

    def _dispatch(self, event: Event) -> str:
        # A breadcrumb hook owner attaches its own breadcrumbs.
        if self._breadcrumb_hook is None:
            crumbs = self._trail.get()
            if crumbs:
                event["breadcrumbs"] = crumbs

        hook = self._send_hook
        if hook is not None:
            hook(event)
        else:
            self.send(event)
        return event["event_id"]


def _exception_payload(exc: BaseException) -> dict[str, Any]:
    frames = [
        {
            "filename": frame.filename,
            "function": frame.name,
            "lineno": frame.lineno,
            "context_line": frame.line,
        }
        for frame in traceback.extract_tb(exc.__traceback__)
    ]
    return {
        "type": type(exc).__name__,
        "module": type(exc).__module__,
        "value": str(exc),
        "stacktrace": {"frames": frames},
        "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    }


# Process-wide client shared by the top-level API, the backend and integrations
_client: CaptureClient | None = None


def get_client() -> CaptureClient:
    """Get the global capture client singleton."""
    global _client
    if _client is None:
        _client = CaptureClient()
    return _client


def reset_client() -> None:
    """Close and drop the global client (for testing)."""
    global _client
    if _client is not None:
        _client.close()
    _client = None
