"""Route registration for dashboard server."""

from __future__ import annotations


class DashboardServerRoutesMixin:
    """Route registration helper."""

    def _register_routes(self) -> None:
        # Health check
        self._app.router.add_get("/healthz", self._healthz)

        # Admin page + form actions
        self._app.router.add_get("/admin", self._admin_index)
        self._app.router.add_get("/admin/", self._admin_index)
        self._app.router.add_post("/admin/reports/{report_id}/select", self._admin_select_report)
        self._app.router.add_post("/admin/selection/submit", self._admin_submit_response)
        self._app.router.add_post("/admin/selection/block", self._admin_block_user)
        self._app.router.add_post("/admin/selection/close", self._admin_close_report)
        self._app.router.add_post("/admin/submitters/select", self._admin_select_submitter)
        self._app.router.add_post("/admin/submitters/close", self._admin_close_submitter)
        self._app.router.add_post("/admin/outbox/retry", self._admin_retry_outbox)
        self._app.router.add_post("/admin/error/dismiss", self._admin_dismiss_error)

        # Admin API routes
        self._app.router.add_get("/admin/api/state", self._admin_api_state)
        self._app.router.add_post("/admin/api/reports/{report_id}/select", self._admin_api_select_report)
        self._app.router.add_post("/admin/api/selection/response", self._admin_api_edit_response)
        self._app.router.add_post("/admin/api/selection/submit", self._admin_api_submit)
        self._app.router.add_post("/admin/api/selection/block", self._admin_api_block)
        self._app.router.add_post("/admin/api/selection/close", self._admin_api_close)
        self._app.router.add_post("/admin/api/submitters/select", self._admin_api_select_submitter)
        self._app.router.add_post("/admin/api/submitters/close", self._admin_api_close_submitter)
        self._app.router.add_post("/admin/api/outbox/retry", self._admin_api_retry_outbox)
        self._app.router.add_post("/admin/api/error/dismiss", self._admin_api_dismiss_error)
