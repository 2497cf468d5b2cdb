"""Capture library: breadcrumbs, events and their transport."""

from tracebridge.capture.client import CaptureClient, get_client, reset_client
from tracebridge.capture.log_handler import BreadcrumbHandler
from tracebridge.capture.transport import HttpTransport

__all__ = [
    "BreadcrumbHandler",
    "CaptureClient",
    "HttpTransport",
    "get_client",
    "reset_client",
]
