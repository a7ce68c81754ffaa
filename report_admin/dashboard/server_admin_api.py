"""Admin JSON API handlers."""

from __future__ import annotations

from aiohttp import web

from .server_helpers import _coerce_int


class DashboardServerAdminApiMixin:
    """JSON API mirroring the operator intents of the HTML page."""

    def _state_response(self, *, status: int = 200, **extra: object) -> web.Response:
        payload = self.view_model.state.as_dict()
        payload["outboxPending"] = self.view_model.outbox_pending
        payload.update(extra)
        return web.json_response(payload, status=status)

    def _error_response(self) -> web.Response:
        error = self.view_model.state.error
        return web.json_response(
            {"ok": False, "error": error.as_dict() if error else None},
            status=502,
        )

    async def _admin_api_state(self, request: web.Request) -> web.Response:
        return self._state_response()

    async def _admin_api_select_report(self, request: web.Request) -> web.Response:
        self._require_csrf_header(request)
        report_id = request.match_info.get("report_id", "")
        if not self.view_model.select_report(report_id):
            raise web.HTTPNotFound(text="Report not found.")
        return self._state_response()

    async def _admin_api_edit_response(self, request: web.Request) -> web.Response:
        self._require_csrf_header(request)
        data = await self._read_json(request)
        if self.view_model.state.selected_report is None:
            raise web.HTTPConflict(text="No report selected.")
        self.view_model.edit_response(str(data.get("response") or ""))
        return self._state_response()

    async def _admin_api_submit(self, request: web.Request) -> web.Response:
        self._require_csrf_header(request)
        data = await self._read_json(request, allow_empty=True)
        if self.view_model.state.selected_report is None:
            raise web.HTTPConflict(text="No report selected.")
        if "response" in data:
            self.view_model.edit_response(str(data.get("response") or ""))
        if not await self.view_model.handle_response_submit():
            return self._error_response()
        return self._state_response(ok=True)

    async def _admin_api_block(self, request: web.Request) -> web.Response:
        self._require_csrf_header(request)
        report = self.view_model.state.selected_report
        if report is None:
            raise web.HTTPConflict(text="No report selected.")
        if not await self.view_model.handle_block_user(report.user_id):
            return self._error_response()
        return self._state_response(ok=True)

    async def _admin_api_close(self, request: web.Request) -> web.Response:
        self._require_csrf_header(request)
        self.view_model.close_report()
        return self._state_response()

    async def _admin_api_select_submitter(self, request: web.Request) -> web.Response:
        self._require_csrf_header(request)
        data = await self._read_json(request)
        name = data.get("name")
        self.view_model.select_submitter(None if name is None else str(name))
        return self._state_response()

    async def _admin_api_close_submitter(self, request: web.Request) -> web.Response:
        self._require_csrf_header(request)
        self.view_model.close_submitter()
        return self._state_response()

    async def _admin_api_retry_outbox(self, request: web.Request) -> web.Response:
        self._require_csrf_header(request)
        data = await self._read_json(request, allow_empty=True)
        limit = _coerce_int(data.get("limit"), default=50, min_value=1, max_value=500)
        delivered = await self.view_model.retry_pending_notifications(limit=limit)
        return self._state_response(delivered=delivered)

    async def _admin_api_dismiss_error(self, request: web.Request) -> web.Response:
        self._require_csrf_header(request)
        self.view_model.dismiss_error()
        return self._state_response()
