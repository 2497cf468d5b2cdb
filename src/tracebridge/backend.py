"""Backend that adapts a reporting frontend onto the capture client."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any

from tracebridge.capture import excepthook
from tracebridge.capture.client import CaptureClient, get_client
from tracebridge.errors import InvariantError
from tracebridge.frontend import Frontend
from tracebridge.types import STATUS_OK, STATUS_SERVER_ERROR, Breadcrumb, Context, Event
from tracebridge.utils import forget

logger = logging.getLogger("tracebridge.backend")


class CaptureBackend:
    """Routes the capture client's breadcrumbs and events through a frontend.

    Also keeps the latest context and breadcrumb snapshots handed over by the
    frontend. Snapshots are replaced wholesale and copied on the way in and
    out, so callers can never mutate what is stored.
    """

    def __init__(self, frontend: Frontend, client: CaptureClient | None = None) -> None:
        self._frontend = frontend
        self._client = client or get_client()
        # Bound before install() claims the send hook, so send_event always transmits.
        self._send = self._client.send
        self._breadcrumbs: list[Breadcrumb] = []
        self._context: Context = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._owns_excepthook = False
        self._previous_loop_handler: Any = None

    @property
    def client(self) -> CaptureClient:
        return self._client

    async def install(self) -> bool:
        """Configure the capture client and hook it into the frontend.

        Raises:
            InvariantError: If the frontend has no DSN. The frontend only
                installs a backend when enabled with a valid DSN, so this is
                a programming error.
        """
        dsn = self._frontend.get_dsn()
        if not dsn:
            raise InvariantError("Invariant exception: install() must not be called when disabled")

        options = self._frontend.get_options()
        self._loop = asyncio.get_running_loop()
        self._client.config(dsn, options).install()

        # Breadcrumbs the client records go to the frontend first instead of
        # being stored by the client.
        self._client.on_breadcrumb(self._forward_breadcrumb)
        # Events the client would transmit go to the frontend, which sends
        # them back here through send_event().
        self._client.on_send(self._forward_event)

        if options.capture_unhandled_exceptions and not self._owns_excepthook:
            excepthook.install(self._client)
            self._previous_loop_handler = excepthook.install_loop_handler(
                self._client, self._loop
            )
            self._owns_excepthook = True

        logger.info("Capture backend installed for %s", self._client.dsn.netloc)
        return True

    async def store_context(self, context: Context) -> None:
        self._context = copy.deepcopy(context)

    async def load_context(self) -> Context:
        return copy.deepcopy(self._context)

    async def store_breadcrumbs(self, breadcrumbs: list[Breadcrumb]) -> None:
        self._breadcrumbs = copy.deepcopy(list(breadcrumbs))

    async def load_breadcrumbs(self) -> list[Breadcrumb]:
        return copy.deepcopy(self._breadcrumbs)

    async def send_event(self, event: Event) -> int:
        """Transmit an event. Returns 200 if delivery succeeded, 500 otherwise."""
        loop = asyncio.get_running_loop()
        status: asyncio.Future[int] = loop.create_future()

        def _resolve(code: int) -> None:
            if not status.done():
                status.set_result(code)

        def _on_sent(error: Exception | None) -> None:
            if error is not None:
                logger.debug("Event %s not delivered: %s", event.get("event_id"), error)
            code = STATUS_OK if error is None else STATUS_SERVER_ERROR
            loop.call_soon_threadsafe(_resolve, code)

        self._send(event, _on_sent)
        return await status

    def close(self) -> None:
        """Release the client's hooks and stop its transport."""
        self._client.on_breadcrumb(None)
        self._client.on_send(None)
        if self._owns_excepthook:
            excepthook.uninstall()
            if self._loop is not None and not self._loop.is_closed():
                self._loop.set_exception_handler(self._previous_loop_handler)
            self._previous_loop_handler = None
            self._owns_excepthook = False
        self._client.close()

    def _forward_breadcrumb(self, breadcrumb: Breadcrumb) -> None:
        try:
            forget(self._frontend.add_breadcrumb(breadcrumb), loop=self._loop)
        except Exception:
            logger.exception("Failed to forward breadcrumb to frontend")

    def _forward_event(self, event: Event) -> None:
        try:
            forget(self._frontend.capture_event(event), loop=self._loop)
        except Exception:
            logger.exception("Failed to forward event %s to frontend", event.get("event_id"))
