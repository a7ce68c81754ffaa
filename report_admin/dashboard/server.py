"""A tiny aiohttp-powered admin dashboard for user reports.

Server-rendered HTML plus a small JSON API, both driven by the live
``ReportAggregationViewModel``.
"""

from __future__ import annotations

from .server_app import DashboardServer
from .server_config import DashboardConfig
from .server_helpers import CSRF_COOKIE_NAME, _build_query_link, _escape, _format_timestamp
from .server_render import render_dashboard

__all__ = [
    "CSRF_COOKIE_NAME",
    "DashboardConfig",
    "DashboardServer",
    "_build_query_link",
    "_escape",
    "_format_timestamp",
    "render_dashboard",
]
