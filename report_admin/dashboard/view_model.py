"""Live aggregation view-model for the admin dashboard."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable, Optional

import aiosqlite

from ..storage.base import ChildFilter, Snapshot, Store, Subscription, join_path
from ..storage.enums import ReportStatus
from ..storage.errors import ConcurrentModificationError, StoreError
from ..storage.outbox import NotificationOutbox
from .aggregation import COMMUNITY_MATTER_TYPE, StatSignal, materialize_reports
from .models import NotificationTemplate
from .state import (
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

logger = logging.getLogger(__name__)

REPORTS_PATH = "reports"
USERS_PATH = "users"
RESOLVED_FILTER = ChildFilter(field="status", value=ReportStatus.RESOLVED.value)

CONNECT_ERROR_MESSAGE = "Unable to connect to the database. Please try again later."


class WriteMode(str, Enum):
    """How the status toggle is written."""

    BLIND = "blind"  # Merge-update without reading the current value
    CHECKED = "checked"  # Compare-and-set against the status the operator saw


class NotificationError(Exception):
    """Sending a user notification failed."""


StateListener = Callable[[DashboardState], None]


def _now_ms() -> int:
    return int(time.time() * 1000)


class ReportAggregationViewModel:
    """
    Keeps a live copy of ``reports`` and ``users`` and derives dashboard state.

    Three independent subscriptions feed the state: the full reports
    collection (report list, total count, community grouping), the users
    collection (user count) and reports filtered to ``status == "resolved"``
    (resolved count). Each stream updates only its own part of the stats, so
    the three numbers are never forced into agreement.

    All callbacks and operations run on one event loop. A write made here is
    only reflected in state once the store pushes the resulting snapshot back.
    """

    def __init__(
        self,
        store: Store,
        *,
        outbox: Optional[NotificationOutbox] = None,
        matter_type: str = COMMUNITY_MATTER_TYPE,
        notification: Optional[NotificationTemplate] = None,
        write_mode: WriteMode | str = WriteMode.BLIND,
        clock: Callable[[], int] = _now_ms,
    ):
        self.store = store
        self.outbox = outbox
        self.matter_type = matter_type
        self.notification = notification or NotificationTemplate()
        self.write_mode = WriteMode(write_mode)
        self._clock = clock
        self._state = DashboardState()
        self._subscriptions: list[Subscription] = []
        self._listeners: list[StateListener] = []
        self._outbox_pending = 0

    # -- state -------------------------------------------------------------

    @property
    def state(self) -> DashboardState:
        return self._state

    @property
    def active(self) -> bool:
        return bool(self._subscriptions)

    @property
    def outbox_pending(self) -> int:
        return self._outbox_pending

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener; returns a function that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def dispatch(self, event: object) -> DashboardState:
        self._state = reduce(self._state, event)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error("Error in state listener: %s", e)
        return self._state

    def status(self) -> dict:
        """Flat status for health and metrics endpoints."""
        stats = self._state.stats
        return {
            "status": "error" if self._state.error else "ok",
            "active": self.active,
            "total_users": stats.total_users,
            "total_reports": stats.total_reports,
            "resolved_reports": stats.resolved_reports,
            "community_submitters": len(self._state.community),
            "outbox_pending": self._outbox_pending,
        }

    # -- subscriptions -----------------------------------------------------

    async def activate(self) -> None:
        """
        Open the three subscriptions.

        Either all three are open afterwards or none is, so a failed
        activation can simply be retried.
        """
        if self._subscriptions:
            return
        try:
            self._subscriptions.append(
                await self.store.subscribe(
                    REPORTS_PATH,
                    self._on_reports,
                    self._subscription_error_handler("reports"),
                )
            )
            self._subscriptions.append(
                await self.store.subscribe(
                    USERS_PATH,
                    self._on_users,
                    self._subscription_error_handler("users"),
                )
            )
            self._subscriptions.append(
                await self.store.subscribe(
                    REPORTS_PATH,
                    self._on_resolved,
                    self._subscription_error_handler("resolved reports"),
                    child_filter=RESOLVED_FILTER,
                )
            )
        except StoreError as e:
            logger.error("Error setting up listeners: %s", e)
            await self.deactivate()
            self.dispatch(OperationFailed(ErrorKind.SUBSCRIPTION, CONNECT_ERROR_MESSAGE))
        else:
            logger.info("Dashboard subscriptions active")
        self.dispatch(SubscriptionsReady())
        await self._refresh_outbox_count()

    async def deactivate(self) -> None:
        """Release every store-side listener."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.close()
        if subscriptions:
            logger.info("Dashboard subscriptions closed")

    def _on_reports(self, snapshot: Snapshot) -> None:
        self.dispatch(ReportsReceived(materialize_reports(snapshot), self.matter_type))

    def _on_users(self, snapshot: Snapshot) -> None:
        self.dispatch(StatReceived(StatSignal.TOTAL_USERS, snapshot.size))

    def _on_resolved(self, snapshot: Snapshot) -> None:
        self.dispatch(StatReceived(StatSignal.RESOLVED_REPORTS, snapshot.size))

    def _subscription_error_handler(self, label: str) -> Callable[[Exception], None]:
        def _handle(exc: Exception) -> None:
            logger.error("Error fetching %s: %s", label, exc)
            self.dispatch(OperationFailed(ErrorKind.SUBSCRIPTION))

        return _handle

    # -- writes ------------------------------------------------------------

    async def _write_status(self, report_id: str, current_status: Optional[str], response: Optional[str]) -> None:
        seen = ReportStatus.coerce(current_status)
        fields = {
            "status": seen.toggled().value,
            "response": response or "",
            "resolvedAt": self._clock(),
        }
        path = join_path(REPORTS_PATH, report_id)

        if self.write_mode is WriteMode.BLIND:
            await self.store.update(path, fields)
            return

        def _toggle(current: Any) -> Any:
            if not isinstance(current, dict):
                raise ConcurrentModificationError("Report no longer exists", path=path)
            if ReportStatus.coerce(current.get("status")) is not seen:
                raise ConcurrentModificationError(
                    f"Report status changed to {current.get('status')!r} since it was loaded",
                    path=path,
                )
            updated = dict(current)
            updated.update(fields)
            return updated

        await self.store.transaction(path, _toggle)

    async def toggle_resolve_status(
        self,
        report_id: str,
        current_status: Optional[str],
        response: Optional[str] = None,
    ) -> bool:
        """Flip pending/resolved, stamp ``resolvedAt`` and store the response."""
        try:
            await self._write_status(report_id, current_status, response)
        except ConcurrentModificationError as e:
            logger.warning("Status update for report %s rejected: %s", report_id, e)
            self.dispatch(
                OperationFailed(
                    ErrorKind.STATUS_UPDATE,
                    "This report was changed by someone else. Review it and try again.",
                )
            )
            return False
        except StoreError as e:
            logger.error("Error updating report status: %s", e)
            self.dispatch(OperationFailed(ErrorKind.STATUS_UPDATE))
            return False
        logger.info("Report %s toggled from %s", report_id, ReportStatus.coerce(current_status).value)
        return True

    async def send_notification_to_user(self, user_id: Optional[str], report_id: str, response: str) -> None:
        """Write the response notification for ``user_id``; raises NotificationError."""
        if not user_id:
            raise NotificationError(f"Report {report_id} has no user to notify")

        payload = self.notification.render(report_id, response, self._clock())
        entry_id = await self._enqueue_notification(user_id, report_id, payload)
        try:
            await self._deliver_notification(user_id, report_id, payload)
        except StoreError as e:
            logger.error("Error sending notification: %s", e)
            await self._mark_failed(entry_id, str(e))
            await self._refresh_outbox_count()
            raise NotificationError("Failed to send notification.") from e

        await self._mark_sent(entry_id)
        await self._refresh_outbox_count()

    async def _deliver_notification(self, user_id: str, report_id: str, payload: dict) -> None:
        path = join_path(USERS_PATH, user_id, "notifications", report_id)
        await self.store.set(path, payload)

    async def _enqueue_notification(self, user_id: str, report_id: str, payload: dict) -> Optional[int]:
        if self.outbox is None:
            return None
        try:
            return await self.outbox.enqueue(user_id, report_id, payload)
        except aiosqlite.Error as e:
            logger.warning("Could not queue notification for report %s: %s", report_id, e)
            return None

    async def _mark_sent(self, entry_id: Optional[int]) -> None:
        if entry_id is None:
            return
        try:
            await self.outbox.mark_sent(entry_id)
        except aiosqlite.Error as e:
            logger.warning("Could not mark outbox entry %s sent: %s", entry_id, e)

    async def _mark_failed(self, entry_id: Optional[int], error: str) -> None:
        if entry_id is None:
            return
        try:
            await self.outbox.mark_failed(entry_id, error)
        except aiosqlite.Error as e:
            logger.warning("Could not mark outbox entry %s failed: %s", entry_id, e)

    async def handle_response_submit(self) -> bool:
        """
        Resolve (or reopen) the selected report, then notify its submitter.

        The status write is not rolled back when the notification fails; the
        notification stays in the outbox for ``retry_pending_notifications``.
        """
        report = self._state.selected_report
        if report is None:
            return False

        response = self._state.response_draft
        if not await self.toggle_resolve_status(report.id, report.status, response):
            return False

        try:
            await self.send_notification_to_user(report.user_id, report.id, response)
        except NotificationError as e:
            logger.error("Error submitting response for report %s: %s", report.id, e)
            self.dispatch(OperationFailed(ErrorKind.NOTIFICATION))
            return False

        self.dispatch(ResponseSubmitted(report.id))
        return True

    async def handle_block_user(self, user_id: Optional[str]) -> bool:
        """Set ``blocked: true`` on the user record."""
        if not user_id:
            self.dispatch(OperationFailed(ErrorKind.BLOCK_USER, "This report has no user to block."))
            return False
        try:
            await self.store.update(join_path(USERS_PATH, user_id), {"blocked": True})
        except StoreError as e:
            logger.error("Error blocking user: %s", e)
            self.dispatch(OperationFailed(ErrorKind.BLOCK_USER))
            return False
        logger.info("User %s blocked", user_id)
        self.dispatch(UserBlocked(user_id))
        return True

    async def retry_pending_notifications(self, *, limit: int = 50) -> int:
        """Re-send queued notifications; returns how many were delivered."""
        if self.outbox is None:
            return 0
        try:
            entries = await self.outbox.get_pending(limit=limit)
        except aiosqlite.Error as e:
            logger.warning("Could not read notification outbox: %s", e)
            return 0
        delivered = 0
        for entry in entries:
            entry_id = int(entry["id"])
            try:
                await self._deliver_notification(entry["user_id"], entry["report_id"], entry["payload"])
            except StoreError as e:
                logger.warning(
                    "Notification retry failed for user %s report %s: %s",
                    entry["user_id"],
                    entry["report_id"],
                    e,
                )
                await self._mark_failed(entry_id, str(e))
                continue
            await self._mark_sent(entry_id)
            delivered += 1
        await self._refresh_outbox_count()
        if delivered:
            logger.info("Delivered %d queued notification(s)", delivered)
        return delivered

    async def _refresh_outbox_count(self) -> None:
        if self.outbox is None:
            return
        try:
            self._outbox_pending = await self.outbox.count_pending()
        except aiosqlite.Error as e:
            logger.warning("Could not count pending notifications: %s", e)

    # -- selection ---------------------------------------------------------

    def select_report(self, report_id: str) -> bool:
        for report in self._state.reports:
            if report.id == report_id:
                self.dispatch(ReportSelected(report))
                return True
        return False

    def edit_response(self, text: str) -> None:
        self.dispatch(ResponseEdited(text or ""))

    def close_report(self) -> None:
        self.dispatch(ReportClosed())

    def select_submitter(self, name: Optional[str]) -> tuple[str, ...]:
        self.dispatch(SubmitterSelected(name))
        return self._state.submitter_messages

    def close_submitter(self) -> None:
        self.dispatch(SubmitterClosed())

    def dismiss_error(self) -> None:
        self.dispatch(ErrorDismissed())

    def show_notice(self, message: str) -> None:
        self.dispatch(NoticeShown(message))
