"""Shared helpers/constants for the dashboard server."""

from __future__ import annotations

import html
from datetime import datetime, timezone
from urllib.parse import urlencode

CSRF_COOKIE_NAME = "ra_admin_csrf"
CSRF_PLACEHOLDER = "__SET_COOKIE__"


def _escape(value: object) -> str:
    return html.escape("" if value is None else str(value), quote=True)


def _coerce_int(value: object, *, default: int, min_value: int | None = None, max_value: int | None = None) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        parsed = int(default)
    if min_value is not None:
        parsed = max(min_value, parsed)
    if max_value is not None:
        parsed = min(max_value, parsed)
    return parsed


def _format_timestamp(value: int | None) -> str:
    """Milliseconds since epoch as a UTC string; empty for missing values."""
    if value is None:
        return ""
    try:
        moment = datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return ""
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def _build_query_link(base: str, **params: object) -> str:
    clean = {k: v for k, v in params.items() if v not in (None, "", [], False)}
    if not clean:
        return base
    return f"{base}?{urlencode(clean, doseq=True)}"


def _status_badge(value: str) -> str:
    status = (value or "").strip().lower() or "pending"
    return f'<span class="ra-badge ra-badge-{_escape(status)}">{_escape(status.upper())}</span>'
