"""Storage adapters for the report admin dashboard."""

from .base import ChildFilter, Snapshot, Store, Subscription
from .enums import OutboxStatus, ReportStatus
from .errors import ConcurrentModificationError, PermissionDeniedError, StoreError
from .memory import InMemoryStore
from .outbox import NotificationOutbox

__all__ = [
    "ChildFilter",
    "ConcurrentModificationError",
    "InMemoryStore",
    "NotificationOutbox",
    "OutboxStatus",
    "PermissionDeniedError",
    "ReportStatus",
    "Snapshot",
    "Store",
    "StoreError",
    "Subscription",
]
