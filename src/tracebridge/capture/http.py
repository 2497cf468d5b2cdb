"""HTTP breadcrumbs for httpx."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from tracebridge.capture.transport import INTERNAL_EXTENSION

if TYPE_CHECKING:
    from tracebridge.capture.client import CaptureClient

_client: CaptureClient | None = None
_original_sync_send: Any = None
_original_async_send: Any = None


def _record(request: Any, status_code: int, error_msg: str | None, start: float) -> None:
    client = _client
    if client is None or request.extensions.get(INTERNAL_EXTENSION):
        return

    data: dict[str, Any] = {
        "method": request.method,
        "url": str(request.url),
        "status_code": status_code,
        "duration_ms": round((time.monotonic() - start) * 1000, 2),
    }
    if error_msg:
        data["reason"] = error_msg
    level = "error" if error_msg or status_code >= 400 else "info"
    client.record_breadcrumb("http", f"{request.method} {request.url}", level=level, data=data)


def patch_httpx(client: CaptureClient) -> None:
    """Monkey-patch httpx so every outgoing request leaves a breadcrumb."""
    global _client, _original_sync_send, _original_async_send

    import httpx

    _client = client
    if _original_sync_send is not None:
        return  # Already patched

    _original_sync_send = httpx.Client.send
    _original_async_send = httpx.AsyncClient.send

    def _patched_sync_send(self: Any, request: Any, **kwargs: Any) -> Any:
        start = time.monotonic()
        status_code = 0
        error_msg = None
        try:
            response = _original_sync_send(self, request, **kwargs)
            status_code = response.status_code
            return response
        except Exception as exc:
            error_msg = str(exc)
            raise
        finally:
            _record(request, status_code, error_msg, start)

    async def _patched_async_send(self: Any, request: Any, **kwargs: Any) -> Any:
        start = time.monotonic()
        status_code = 0
        error_msg = None
        try:
            response = await _original_async_send(self, request, **kwargs)
            status_code = response.status_code
            return response
        except Exception as exc:
            error_msg = str(exc)
            raise
        finally:
            _record(request, status_code, error_msg, start)

    httpx.Client.send = _patched_sync_send  # type: ignore[assignment]
    httpx.AsyncClient.send = _patched_async_send  # type: ignore[assignment]


def unpatch_httpx() -> None:
    """Restore original httpx methods."""
    global _client, _original_sync_send, _original_async_send

    _client = None
    if _original_sync_send is None:
        return

    import httpx

    httpx.Client.send = _original_sync_send  # type: ignore[assignment]
    httpx.AsyncClient.send = _original_async_send  # type: ignore[assignment]
    _original_sync_send = None
    _original_async_send = None
