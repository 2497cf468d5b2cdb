"""Drop-in logging handler that records log lines as breadcrumbs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tracebridge.capture.breadcrumbs import make_breadcrumb

if TYPE_CHECKING:
    from tracebridge.capture.client import CaptureClient

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}


def _level_name(levelno: int) -> str:
    for threshold in (logging.CRITICAL, logging.ERROR, logging.WARNING, logging.INFO):
        if levelno >= threshold:
            return _LEVEL_NAMES[threshold]
    return "debug"


class BreadcrumbHandler(logging.Handler):
    """Python logging handler that turns each record into a breadcrumb.

    Records from the SDK's own ``tracebridge.*`` loggers are skipped.
    """

    def __init__(self, client: CaptureClient | None = None, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._client = client

    def emit(self, record: logging.LogRecord) -> None:
        if record.name == "tracebridge" or record.name.startswith("tracebridge."):
            return

        client = self._client
        if client is None:
            from tracebridge.capture.client import get_client

            client = get_client()

        try:
            client.capture_breadcrumb(make_breadcrumb(
                category=record.name,
                message=self.format(record),
                level=_level_name(record.levelno),
                data={"filename": record.filename, "lineno": record.lineno},
            ))
        except Exception:
            self.handleError(record)
