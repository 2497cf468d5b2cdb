"""Breadcrumb records and the default in-memory trail."""

from __future__ import annotations

import threading
from collections import deque
from datetime import UTC, datetime
from typing import Any

from tracebridge.types import Breadcrumb

_DEFAULT_MAX_BREADCRUMBS = 100


def make_breadcrumb(
    category: str,
    message: str,
    level: str = "info",
    data: dict[str, Any] | None = None,
) -> Breadcrumb:
    """Build a breadcrumb stamped with the current UTC time."""
    return {
        "timestamp": datetime.now(UTC).isoformat(),
        "category": category,
        "message": message,
        "level": level,
        "data": dict(data or {}),
    }


class BreadcrumbTrail:
    """Bounded trail kept by the capture client while no hook claims breadcrumbs.

    The oldest entries fall off once ``max_breadcrumbs`` is reached.
    """

    def __init__(self, max_breadcrumbs: int = _DEFAULT_MAX_BREADCRUMBS) -> None:
        self._lock = threading.Lock()
        self._crumbs: deque[Breadcrumb] = deque(maxlen=max_breadcrumbs)

    def add(self, breadcrumb: Breadcrumb) -> None:
        with self._lock:
            self._crumbs.append(breadcrumb)

    def get(self) -> list[Breadcrumb]:
        with self._lock:
            return list(self._crumbs)

    def clear(self) -> None:
        with self._lock:
            self._crumbs.clear()

    def resize(self, max_breadcrumbs: int) -> None:
        """Change the bound, keeping the newest entries."""
        with self._lock:
            self._crumbs = deque(self._crumbs, maxlen=max_breadcrumbs)

    def __len__(self) -> int:
        return len(self._crumbs)
