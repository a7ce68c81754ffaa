from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from ..storage.enums import ReportStatus


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Report:
    """
    One user-submitted report as stored under ``reports/{id}``.

    Field names follow Python conventions; ``from_record`` and ``as_dict``
    translate to and from the camelCase keys used in the store. ``status`` is
    kept as the raw stored value so the literal ``"resolved"`` check used by
    the resolved-count query stays observable; ``display_status`` is the
    operator-facing value where anything unset reads as pending.
    """

    id: str
    created_at: Optional[int] = None
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    matter_type: Optional[str] = None
    name: Optional[str] = None
    user_id: Optional[str] = None
    status: Optional[str] = None
    resolved_at: Optional[int] = None
    response: Optional[str] = None
    community_message: Optional[str] = None

    @classmethod
    def from_record(cls, key: str, payload: Any) -> "Report":
        data: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}
        return cls(
            id=str(key),
            created_at=_optional_int(data.get("createdAt")),
            description=_optional_str(data.get("description")),
            email=_optional_str(data.get("email")),
            phone=_optional_str(data.get("phone")),
            matter_type=_optional_str(data.get("matterType")),
            name=_optional_str(data.get("name")),
            user_id=_optional_str(data.get("userId")),
            status=_optional_str(data.get("status")),
            resolved_at=_optional_int(data.get("resolvedAt")),
            response=_optional_str(data.get("response")),
            community_message=_optional_str(data.get("communityMessage")),
        )

    @property
    def display_status(self) -> ReportStatus:
        return ReportStatus.coerce(self.status)

    @property
    def is_resolved(self) -> bool:
        return self.status == ReportStatus.RESOLVED.value

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "description": self.description,
            "email": self.email,
            "phone": self.phone,
            "matterType": self.matter_type,
            "name": self.name,
            "userId": self.user_id,
            "status": self.status,
            "displayStatus": self.display_status.value,
            "resolvedAt": self.resolved_at,
            "response": self.response,
            "communityMessage": self.community_message,
        }


@dataclass(frozen=True)
class CommunityAggregate:
    """Per-submitter grouping of community reports; ``reports == len(messages)``."""

    name: Optional[str]
    reports: int
    messages: Tuple[str, ...] = field(default_factory=tuple)

    def as_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "reports": self.reports, "messages": list(self.messages)}


@dataclass(frozen=True)
class Stats:
    total_users: int = 0
    total_reports: int = 0
    resolved_reports: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "totalUsers": self.total_users,
            "totalReports": self.total_reports,
            "resolvedReports": self.resolved_reports,
        }


@dataclass(frozen=True)
class NotificationTemplate:
    """Shape of the record written to ``users/{userId}/notifications/{reportId}``."""

    type: str = "report_response"
    message_template: str = "Your report (ID: {report_id}) has been responded to."

    def render(self, report_id: str, response: str, created_at: int) -> Dict[str, Any]:
        return {
            "type": self.type,
            "message": self.message_template.format(report_id=report_id),
            "response": response,
            "createdAt": created_at,
            "read": False,
        }
