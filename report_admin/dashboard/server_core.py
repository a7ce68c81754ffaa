"""Core dashboard server initialization and lifecycle."""

from __future__ import annotations

import logging

from aiohttp import web

from .server_config import DashboardConfig
from .view_model import ReportAggregationViewModel

logger = logging.getLogger(__name__)


class DashboardServerCoreMixin:
    """Core dashboard server lifecycle."""

    def __init__(
        self,
        *,
        config: DashboardConfig,
        view_model: ReportAggregationViewModel,
    ):
        self.config = config
        self.view_model = view_model

        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

        self._app = web.Application(middlewares=[self._admin_auth_middleware])
        self._register_routes()

    async def start(self) -> None:
        if not self.config.enabled:
            return
        if self._runner:
            return
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, host=self.config.host, port=int(self.config.port))
        await self._site.start()
        logger.info("Dashboard listening on %s:%s", self.config.host, self.config.port)

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
        self._runner = None
        self._site = None

    async def _healthz(self, request: web.Request) -> web.Response:
        return web.json_response({"ok": True, "active": self.view_model.active})
