"""Shared storage enums."""

from __future__ import annotations

from enum import Enum


class ReportStatus(str, Enum):
    """Lifecycle status of a submitted report."""

    PENDING = "pending"  # Awaiting an operator response
    RESOLVED = "resolved"  # Responded to by an operator

    @classmethod
    def coerce(cls, value: object) -> "ReportStatus":
        """Only the exact stored values match; anything else reads as pending."""
        try:
            return cls(value)
        except ValueError:
            return cls.PENDING

    def toggled(self) -> "ReportStatus":
        return ReportStatus.PENDING if self is ReportStatus.RESOLVED else ReportStatus.RESOLVED


class OutboxStatus(str, Enum):
    """Delivery state of a queued notification."""

    PENDING = "pending"  # Queued, send not yet attempted
    SENT = "sent"  # Written to the store
    FAILED = "failed"  # Last attempt failed, eligible for retry
