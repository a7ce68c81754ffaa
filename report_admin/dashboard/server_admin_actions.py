"""Admin form handlers (server-rendered page)."""

from __future__ import annotations

from aiohttp import web

from .server_helpers import _build_query_link

_HOME = "/admin"


def _redirect(msg: str | None = None, *, error: bool = False) -> web.HTTPSeeOther:
    return web.HTTPSeeOther(location=_build_query_link(_HOME, msg=msg, error=1 if error else None))


class DashboardServerAdminActionsMixin:
    """Admin selection and write handlers for HTML forms."""

    async def _admin_select_report(self, request: web.Request) -> web.Response:
        await self._require_csrf(request)
        report_id = request.match_info.get("report_id", "")
        if not self.view_model.select_report(report_id):
            raise _redirect("Report not found", error=True)
        raise _redirect()

    async def _admin_submit_response(self, request: web.Request) -> web.Response:
        data = await self._require_csrf(request)
        if self.view_model.state.selected_report is None:
            raise _redirect("No report selected", error=True)
        if "response" in data:
            self.view_model.edit_response(str(data.get("response") or ""))
        if not await self.view_model.handle_response_submit():
            raise _redirect()
        raise _redirect("Response submitted")

    async def _admin_block_user(self, request: web.Request) -> web.Response:
        await self._require_csrf(request)
        report = self.view_model.state.selected_report
        if report is None:
            raise _redirect("No report selected", error=True)
        await self.view_model.handle_block_user(report.user_id)
        raise _redirect()

    async def _admin_close_report(self, request: web.Request) -> web.Response:
        await self._require_csrf(request)
        self.view_model.close_report()
        raise _redirect()

    async def _admin_select_submitter(self, request: web.Request) -> web.Response:
        data = await self._require_csrf(request)
        # Reports without a submitter name are grouped under None.
        name = None if data.get("unnamed") == "1" else str(data.get("name") or "")
        self.view_model.select_submitter(name)
        raise _redirect()

    async def _admin_close_submitter(self, request: web.Request) -> web.Response:
        await self._require_csrf(request)
        self.view_model.close_submitter()
        raise _redirect()

    async def _admin_retry_outbox(self, request: web.Request) -> web.Response:
        await self._require_csrf(request)
        delivered = await self.view_model.retry_pending_notifications()
        raise _redirect(f"Delivered {delivered} queued notification(s)")

    async def _admin_dismiss_error(self, request: web.Request) -> web.Response:
        await self._require_csrf(request)
        self.view_model.dismiss_error()
        raise _redirect()
