"""Admin dashboard: live aggregation view-model and HTTP presentation."""

from .models import CommunityAggregate, NotificationTemplate, Report, Stats
from .state import DashboardError, DashboardState, ErrorKind, reduce
from .view_model import NotificationError, ReportAggregationViewModel, WriteMode

__all__ = [
    "CommunityAggregate",
    "DashboardError",
    "DashboardState",
    "ErrorKind",
    "NotificationError",
    "NotificationTemplate",
    "Report",
    "ReportAggregationViewModel",
    "Stats",
    "WriteMode",
    "reduce",
]
