"""Tests for the dashboard state reducer."""

from __future__ import annotations

from report_admin.dashboard.aggregation import StatSignal
from report_admin.dashboard.models import Report
from report_admin.dashboard.state import (
    DEFAULT_ERROR_MESSAGES,
    DashboardState,
    ErrorDismissed,
    ErrorKind,
    NoticeShown,
    OperationFailed,
    ReportClosed,
    ReportSelected,
    ReportsReceived,
    ResponseEdited,
    ResponseSubmitted,
    StatReceived,
    SubmitterClosed,
    SubmitterSelected,
    SubscriptionsReady,
    UserBlocked,
    reduce,
)

ALICE_1 = Report(id="r1", name="Alice", matter_type="Community", description="leak", status="pending")
ALICE_2 = Report(id="r3", name="Alice", matter_type="Community", description="leak2")
BOB = Report(id="r2", name="Bob", matter_type="Safety", description="light", response="Fixed", status="resolved")


def _loaded() -> DashboardState:
    state = reduce(DashboardState(), ReportsReceived((ALICE_1, BOB, ALICE_2)))
    return reduce(state, SubscriptionsReady())


def test_initial_state_is_loading():
    state = DashboardState()
    assert state.loading is True
    assert state.reports == ()
    assert state.error is None


def test_reports_received_recomputes_everything():
    state = _loaded()

    assert state.loading is False
    assert state.stats.total_reports == 3
    assert len(state.community) == 1
    assert state.community[0].messages == ("leak", "leak2")

    state = reduce(state, ReportsReceived((BOB,)))
    assert state.stats.total_reports == 1
    assert state.community == ()


def test_stats_from_independent_streams_are_kept_as_is():
    state = reduce(DashboardState(), StatReceived(StatSignal.TOTAL_REPORTS, 5))
    state = reduce(state, StatReceived(StatSignal.RESOLVED_REPORTS, 3))
    state = reduce(state, StatReceived(StatSignal.TOTAL_USERS, 2))

    assert state.stats.total_reports == 5
    assert state.stats.resolved_reports == 3
    assert state.stats.total_users == 2


def test_select_report_seeds_draft_from_response():
    state = reduce(_loaded(), ReportSelected(BOB))
    assert state.selected_report == BOB
    assert state.response_draft == "Fixed"

    state = reduce(state, ResponseEdited("Thanks"))
    assert state.response_draft == "Thanks"

    state = reduce(state, ReportClosed())
    assert state.selected_report is None
    assert state.response_draft == ""


def test_edit_without_selection_is_ignored():
    state = _loaded()
    assert reduce(state, ResponseEdited("orphan")) == state


def test_new_snapshot_refreshes_selected_report_and_keeps_draft():
    state = reduce(_loaded(), ReportSelected(ALICE_1))
    state = reduce(state, ResponseEdited("working on it"))
    updated = Report(id="r1", name="Alice", matter_type="Community", description="leak", status="resolved")

    state = reduce(state, ReportsReceived((updated, BOB, ALICE_2)))

    assert state.selected_report == updated
    assert state.response_draft == "working on it"


def test_response_submitted_only_clears_matching_selection():
    state = reduce(_loaded(), ReportSelected(ALICE_1))

    assert reduce(state, ResponseSubmitted("other")).selected_report == ALICE_1

    state = reduce(state, ResponseSubmitted("r1"))
    assert state.selected_report is None
    assert state.response_draft == ""


def test_select_submitter_shows_messages():
    state = reduce(_loaded(), SubmitterSelected("Alice"))
    assert state.submitter_selected is True
    assert state.submitter_messages == ("leak", "leak2")

    state = reduce(state, SubmitterClosed())
    assert state.submitter_selected is False
    assert state.submitter_messages == ()


def test_select_absent_submitter_yields_empty_messages():
    state = reduce(_loaded(), SubmitterSelected("Nobody"))
    assert state.submitter_selected is True
    assert state.submitter_messages == ()


def test_submitter_messages_follow_new_snapshots():
    state = reduce(_loaded(), SubmitterSelected("Alice"))
    state = reduce(state, ReportsReceived((BOB,)))
    assert state.submitter_messages == ()


def test_operation_failed_uses_kind_default_message():
    state = reduce(_loaded(), NoticeShown("done"))
    state = reduce(state, OperationFailed(ErrorKind.BLOCK_USER))

    assert state.error.kind is ErrorKind.BLOCK_USER
    assert state.error.message == DEFAULT_ERROR_MESSAGES[ErrorKind.BLOCK_USER]
    assert state.notice is None
    # Existing data stays visible next to the error.
    assert state.stats.total_reports == 3


def test_operation_failed_custom_message_and_dismiss():
    state = reduce(_loaded(), OperationFailed(ErrorKind.SUBSCRIPTION, "offline"))
    assert state.error.message == "offline"
    assert state.as_dict()["error"] == {"kind": "subscription", "message": "offline"}

    state = reduce(state, ErrorDismissed())
    assert state.error is None


def test_error_kinds_are_distinct():
    messages = {DEFAULT_ERROR_MESSAGES[kind] for kind in ErrorKind}
    assert len(messages) == len(ErrorKind)


def test_user_blocked_sets_notice():
    state = reduce(_loaded(), UserBlocked("u1"))
    assert state.notice == "User blocked successfully"


def test_unknown_event_leaves_state_unchanged():
    state = _loaded()
    assert reduce(state, object()) is state


def test_as_dict_shape():
    state = reduce(reduce(_loaded(), ReportSelected(ALICE_2)), SubmitterSelected("Alice"))

    data = state.as_dict()

    assert data["stats"] == {"totalUsers": 0, "totalReports": 3, "resolvedReports": 0}
    assert data["reports"][2]["displayStatus"] == "pending"
    assert data["reports"][2]["status"] is None
    assert data["selectedReport"]["id"] == "r3"
    assert data["selectedSubmitter"] == {"name": "Alice", "messages": ["leak", "leak2"]}
