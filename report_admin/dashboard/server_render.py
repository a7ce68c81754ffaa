"""Server-rendered HTML for the admin dashboard."""

from __future__ import annotations

from typing import Iterable

from aiohttp import web

from .models import CommunityAggregate, Report, Stats
from .server_helpers import CSRF_PLACEHOLDER, _escape, _format_timestamp, _status_badge
from .state import DashboardError, DashboardState

_STYLE = """
      *, *::before, *::after { box-sizing: border-box; }
      body { margin: 0; font-family: -apple-system, BlinkMacSystemFont, sans-serif; background: #fdf2f8; color: #3b0764; }
      main { max-width: 1200px; margin: 0 auto; padding: 32px; }
      h1 { margin: 0 0 24px; }
      .ra-cards { display: grid; grid-template-columns: repeat(auto-fit, minmax(220px, 1fr)); gap: 16px; margin-bottom: 24px; }
      .ra-card { padding: 20px; border-radius: 8px; color: #fff; }
      .ra-card-users { background: #db2777; }
      .ra-card-reports { background: #9333ea; }
      .ra-card-resolved { background: #d946ef; }
      .ra-card .value { font-size: 32px; font-weight: 700; }
      .ra-panel { background: #fff; border: 1px solid #fbcfe8; border-radius: 8px; margin-bottom: 24px; }
      .ra-panel > header { padding: 16px 20px; border-bottom: 1px solid #fbcfe8; }
      .ra-row { padding: 16px 20px; border-bottom: 1px solid #fce7f3; }
      .ra-badge { padding: 2px 8px; border-radius: 999px; font-size: 12px; }
      .ra-badge-resolved { background: #dcfce7; color: #166534; }
      .ra-badge-pending { background: #fce7f3; color: #9d174d; }
      .ra-flash { padding: 12px 16px; border-radius: 8px; margin-bottom: 16px; }
      .ra-flash-error { background: #fef2f2; border: 1px solid #fecaca; color: #b91c1c; }
      .ra-flash-ok { background: #f0fdf4; border: 1px solid #bbf7d0; color: #166534; }
      .ra-muted { color: #6b7280; }
      textarea { width: 100%; }
      form.inline { display: inline; }
"""


def _layout(*, title: str, body: str) -> str:
    return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width,initial-scale=1" />
    <title>{_escape(title)}</title>
    <style>{_STYLE}</style>
  </head>
  <body>
    <main>
      <h1>{_escape(title)}</h1>
      {body}
    </main>
  </body>
</html>"""


def _csrf_field() -> str:
    return f'<input type="hidden" name="csrf" value="{CSRF_PLACEHOLDER}" />'


def _action_form(action: str, label: str, *, fields: str = "") -> str:
    return (
        f'<form class="inline" method="post" action="{_escape(action)}">'
        f"{_csrf_field()}{fields}<button type=\"submit\">{_escape(label)}</button></form>"
    )


def _flash(message: str | None, *, error: bool = False) -> str:
    if not message:
        return ""
    kind = "error" if error else "ok"
    return f'<div class="ra-flash ra-flash-{kind}">{_escape(message)}</div>'


def _render_error(error: DashboardError | None) -> str:
    if error is None:
        return ""
    return (
        f'<div class="ra-flash ra-flash-error" data-error-kind="{_escape(error.kind.value)}">'
        f"<strong>Error</strong><p>{_escape(error.message)}</p>"
        f"{_action_form('/admin/error/dismiss', 'Dismiss')}</div>"
    )


def _render_stats(stats: Stats) -> str:
    cards = [
        ("users", "Total Users", stats.total_users),
        ("reports", "Total Reports", stats.total_reports),
        ("resolved", "Resolved Cases", stats.resolved_reports),
    ]
    items = "".join(
        f'<div class="ra-card ra-card-{key}"><div>{_escape(label)}</div>'
        f'<div class="value">{int(value)}</div></div>'
        for key, label, value in cards
    )
    return f'<section class="ra-cards">{items}</section>'


def _render_reports(reports: Iterable[Report], *, loading: bool) -> str:
    reports = list(reports)
    if loading:
        rows = '<div class="ra-row ra-muted">Loading reports...</div>'
    elif not reports:
        rows = '<div class="ra-row ra-muted">No reports found</div>'
    else:
        rows = "".join(
            f'<div class="ra-row" id="report-{_escape(report.id)}">'
            f"<h3>{_escape(report.name)} {_status_badge(report.display_status.value)}</h3>"
            f"<p>{_escape(report.description)}</p>"
            f'<div class="ra-muted">Email: {_escape(report.email)}<br />'
            f"Phone: {_escape(report.phone)}<br />Type: {_escape(report.matter_type)}</div>"
            f"{_action_form(f'/admin/reports/{report.id}/select', 'Open')}"
            "</div>"
            for report in reports
        )
    return (
        '<section class="ra-panel"><header><h2>Recent Reports</h2>'
        '<p class="ra-muted">Manage and respond to user submissions</p></header>'
        f"{rows}</section>"
    )


UNNAMED_SUBMITTER_LABEL = "(no name)"


def _submitter_label(name: str | None) -> str:
    return UNNAMED_SUBMITTER_LABEL if name is None else name


def _submitter_fields(name: str | None) -> str:
    if name is None:
        return '<input type="hidden" name="unnamed" value="1" />'
    return f'<input type="hidden" name="name" value="{_escape(name)}" />'


def _render_community(state: DashboardState) -> str:
    community: tuple[CommunityAggregate, ...] = state.community
    if state.submitter_selected:
        name = state.selected_submitter
        messages = state.submitter_messages
        heading = f"{_escape(_submitter_label(name))}'s Messages"
        if messages:
            body = "".join(f'<div class="ra-row">{_escape(message)}</div>' for message in messages)
        else:
            body = '<div class="ra-row ra-muted">No messages found for this user.</div>'
        body += f'<div class="ra-row">{_action_form("/admin/submitters/close", "Back to User List")}</div>'
    else:
        heading = "Select a user to view messages"
        if not community:
            body = '<div class="ra-row ra-muted">No community reports found.</div>'
        else:
            body = "".join(
                '<div class="ra-row">'
                f"<strong>{_escape(_submitter_label(aggregate.name))}</strong> "
                f'<span class="ra-muted">{aggregate.reports} message(s)</span> '
                + _action_form(
                    "/admin/submitters/select",
                    "View",
                    fields=_submitter_fields(aggregate.name),
                )
                + "</div>"
                for aggregate in community
            )
    return (
        '<section class="ra-panel"><header><h2>Community Reports</h2>'
        f'<p class="ra-muted">{heading}</p></header>{body}</section>'
    )


def _render_report_detail(report: Report | None, draft: str) -> str:
    if report is None:
        return ""
    resolved_line = (
        f"<br />Resolved: {_escape(_format_timestamp(report.resolved_at))}" if report.resolved_at else ""
    )
    submit_label = "Update Response" if report.is_resolved else "Submit Response"
    return f"""
    <section class="ra-panel" id="report-detail">
      <header><h2>Report Details</h2></header>
      <div class="ra-row">
        <p><strong>From:</strong> {_escape(report.name)}<br />Report Type: {_escape(report.matter_type)}</p>
        <p>{_escape(report.description)}</p>
        <p class="ra-muted">Email: {_escape(report.email)}<br />Phone: {_escape(report.phone)}<br />
        Status: {_escape(report.display_status.value)}<br />
        Submitted: {_escape(_format_timestamp(report.created_at))}{resolved_line}</p>
        <form method="post" action="/admin/selection/submit">
          {_csrf_field()}
          <label for="response">Your Response:</label>
          <textarea id="response" name="response" rows="4">{_escape(draft)}</textarea>
          <button type="submit">{submit_label}</button>
        </form>
        {_action_form("/admin/selection/block", "Block User")}
        {_action_form("/admin/selection/close", "Close")}
      </div>
    </section>"""


def _render_outbox(pending: int) -> str:
    if not pending:
        return ""
    return (
        '<div class="ra-flash ra-flash-error">'
        f"{int(pending)} notification(s) waiting to be delivered. "
        f"{_action_form('/admin/outbox/retry', 'Retry now')}</div>"
    )


def render_dashboard(state: DashboardState, *, outbox_pending: int = 0, msg: str | None = None, error: bool = False) -> str:
    body = (
        _flash(msg, error=error)
        + _flash(state.notice)
        + _render_error(state.error)
        + _render_outbox(outbox_pending)
        + _render_stats(state.stats)
        + _render_report_detail(state.selected_report, state.response_draft)
        + _render_reports(state.reports, loading=state.loading)
        + _render_community(state)
    )
    return _layout(title="Admin Dashboard", body=body)


class DashboardServerRenderMixin:
    """Admin HTML page."""

    async def _admin_index(self, request: web.Request) -> web.Response:
        msg = request.query.get("msg")
        error = request.query.get("error") == "1"
        html_out = render_dashboard(
            self.view_model.state,
            outbox_pending=self.view_model.outbox_pending,
            msg=msg,
            error=error,
        )
        resp = web.Response(text=html_out, content_type="text/html")
        csrf = self._get_or_set_csrf(request, resp)
        resp.text = resp.text.replace(CSRF_PLACEHOLDER, _escape(csrf))
        return resp
