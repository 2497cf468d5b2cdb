"""Shared data shapes passed between the frontend, backend and capture library."""

from __future__ import annotations

from typing import Any, TypeAlias

Breadcrumb: TypeAlias = dict[str, Any]
Context: TypeAlias = dict[str, Any]
Event: TypeAlias = dict[str, Any]

STATUS_OK = 200
STATUS_SERVER_ERROR = 500

LEVELS = ("debug", "info", "warning", "error", "fatal")
