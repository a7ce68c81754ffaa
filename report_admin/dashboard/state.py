"""Dashboard state record and the reducer that advances it.

``DashboardState`` is immutable; every change goes through
``reduce(state, event)`` which returns a new record. Store callbacks and
operator intents are both expressed as events.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .aggregation import (
    COMMUNITY_MATTER_TYPE,
    StatSignal,
    build_community_aggregates,
    find_aggregate,
    merge_stats,
)
from .models import CommunityAggregate, Report, Stats


class ErrorKind(str, Enum):
    """Failure categories the operator can tell apart."""

    SUBSCRIPTION = "subscription"  # Can't read data
    STATUS_UPDATE = "status_update"  # Report status/response write failed
    NOTIFICATION = "notification"  # User notification write failed
    BLOCK_USER = "block_user"  # Blocked flag write failed


DEFAULT_ERROR_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.SUBSCRIPTION: "Unable to fetch reports. Please check your permissions.",
    ErrorKind.STATUS_UPDATE: "Unable to update report status. Please check your permissions.",
    ErrorKind.NOTIFICATION: (
        "The report was updated but the user could not be notified. "
        "The notification is queued for retry."
    ),
    ErrorKind.BLOCK_USER: "Unable to block user. Please check your permissions.",
}


@dataclass(frozen=True)
class DashboardError:
    kind: ErrorKind
    message: str

    def as_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}


@dataclass(frozen=True)
class DashboardState:
    reports: Tuple[Report, ...] = ()
    community: Tuple[CommunityAggregate, ...] = ()
    stats: Stats = field(default_factory=Stats)
    loading: bool = True
    error: Optional[DashboardError] = None
    notice: Optional[str] = None
    selected_report: Optional[Report] = None
    response_draft: str = ""
    submitter_selected: bool = False
    selected_submitter: Optional[str] = None

    @property
    def submitter_messages(self) -> Tuple[str, ...]:
        """Messages of the selected submitter, empty if the group is gone."""
        if not self.submitter_selected:
            return ()
        aggregate = find_aggregate(self.community, self.selected_submitter)
        return aggregate.messages if aggregate else ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "stats": self.stats.as_dict(),
            "reports": [report.as_dict() for report in self.reports],
            "community": [aggregate.as_dict() for aggregate in self.community],
            "loading": self.loading,
            "error": self.error.as_dict() if self.error else None,
            "notice": self.notice,
            "selectedReport": self.selected_report.as_dict() if self.selected_report else None,
            "responseDraft": self.response_draft,
            "selectedSubmitter": (
                {"name": self.selected_submitter, "messages": list(self.submitter_messages)}
                if self.submitter_selected
                else None
            ),
        }


# -- events ----------------------------------------------------------------


@dataclass(frozen=True)
class ReportsReceived:
    reports: Tuple[Report, ...]
    matter_type: str = COMMUNITY_MATTER_TYPE


@dataclass(frozen=True)
class StatReceived:
    signal: StatSignal
    value: int


@dataclass(frozen=True)
class SubscriptionsReady:
    pass


@dataclass(frozen=True)
class OperationFailed:
    kind: ErrorKind
    message: Optional[str] = None


@dataclass(frozen=True)
class ErrorDismissed:
    pass


@dataclass(frozen=True)
class ReportSelected:
    report: Report


@dataclass(frozen=True)
class ResponseEdited:
    text: str


@dataclass(frozen=True)
class ReportClosed:
    pass


@dataclass(frozen=True)
class ResponseSubmitted:
    report_id: str


@dataclass(frozen=True)
class SubmitterSelected:
    name: Optional[str]


@dataclass(frozen=True)
class SubmitterClosed:
    pass


@dataclass(frozen=True)
class UserBlocked:
    user_id: str


@dataclass(frozen=True)
class NoticeShown:
    message: str


# -- reducer ---------------------------------------------------------------


def _refresh_selection(state: DashboardState, reports: Tuple[Report, ...]) -> Optional[Report]:
    selected = state.selected_report
    if selected is None:
        return None
    for report in reports:
        if report.id == selected.id:
            return report
    return selected


def reduce(state: DashboardState, event: object) -> DashboardState:
    """Return the state that follows ``event``; unknown events leave it as is."""
    if isinstance(event, ReportsReceived):
        reports = tuple(event.reports)
        return replace(
            state,
            reports=reports,
            community=build_community_aggregates(reports, event.matter_type),
            stats=merge_stats(state.stats, StatSignal.TOTAL_REPORTS, len(reports)),
            selected_report=_refresh_selection(state, reports),
        )

    if isinstance(event, StatReceived):
        return replace(state, stats=merge_stats(state.stats, event.signal, event.value))

    if isinstance(event, SubscriptionsReady):
        return replace(state, loading=False)

    if isinstance(event, OperationFailed):
        message = event.message or DEFAULT_ERROR_MESSAGES[event.kind]
        return replace(state, error=DashboardError(kind=event.kind, message=message), notice=None)

    if isinstance(event, ErrorDismissed):
        return replace(state, error=None, notice=None)

    if isinstance(event, ReportSelected):
        return replace(
            state,
            selected_report=event.report,
            response_draft=event.report.response or "",
        )

    if isinstance(event, ResponseEdited):
        if state.selected_report is None:
            return state
        return replace(state, response_draft=event.text)

    if isinstance(event, ReportClosed):
        return replace(state, selected_report=None, response_draft="")

    if isinstance(event, ResponseSubmitted):
        if state.selected_report is None or state.selected_report.id != event.report_id:
            return state
        return replace(state, selected_report=None, response_draft="")

    if isinstance(event, SubmitterSelected):
        return replace(state, submitter_selected=True, selected_submitter=event.name)

    if isinstance(event, SubmitterClosed):
        return replace(state, submitter_selected=False, selected_submitter=None)

    if isinstance(event, UserBlocked):
        return replace(state, notice="User blocked successfully")

    if isinstance(event, NoticeShown):
        return replace(state, notice=event.message)

    return state
