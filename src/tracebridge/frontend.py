"""The contract a reporting frontend exposes to a backend."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from tracebridge.config import Options
from tracebridge.dsn import Dsn
from tracebridge.types import Breadcrumb, Event


@runtime_checkable
class Frontend(Protocol):
    """SDK-wide policy owner (options, enablement, enrichment).

    A backend calls back into its frontend for every breadcrumb and event the
    capture library produces, so the frontend can process them before they
    are stored or sent.
    """

    def get_dsn(self) -> Dsn | None: ...

    def get_options(self) -> Options: ...

    async def add_breadcrumb(self, breadcrumb: Breadcrumb) -> None: ...

    async def capture_event(self, event: Event) -> Any: ...
