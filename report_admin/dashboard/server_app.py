"""Composed dashboard server class."""

from __future__ import annotations

from .server_admin_actions import DashboardServerAdminActionsMixin
from .server_admin_api import DashboardServerAdminApiMixin
from .server_config import DashboardConfig
from .server_core import DashboardServerCoreMixin
from .server_render import DashboardServerRenderMixin
from .server_routes import DashboardServerRoutesMixin
from .server_security import DashboardServerSecurityMixin


class DashboardServer(
    DashboardServerCoreMixin,
    DashboardServerSecurityMixin,
    DashboardServerRenderMixin,
    DashboardServerAdminActionsMixin,
    DashboardServerAdminApiMixin,
    DashboardServerRoutesMixin,
):
    """Dashboard server composed from mixins."""


__all__ = ["DashboardConfig", "DashboardServer"]
