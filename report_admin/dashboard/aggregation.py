"""Derivations computed from store snapshots.

Everything here is a pure function of its inputs: the same snapshot always
produces the same reports, counts and community grouping.
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..storage.base import Snapshot
from .models import CommunityAggregate, Report, Stats

COMMUNITY_MATTER_TYPE = "Community"


class StatSignal(str, Enum):
    """The three independently updated statistics."""

    TOTAL_USERS = "total_users"
    TOTAL_REPORTS = "total_reports"
    RESOLVED_REPORTS = "resolved_reports"


def materialize_reports(snapshot: Snapshot) -> Tuple[Report, ...]:
    """Turn a ``reports`` snapshot into Report records, preserving snapshot order."""
    return tuple(Report.from_record(key, payload) for key, payload in snapshot)


def build_community_aggregates(
    reports: Iterable[Report],
    matter_type: str = COMMUNITY_MATTER_TYPE,
) -> Tuple[CommunityAggregate, ...]:
    """
    Group reports of ``matter_type`` by submitter name.

    Groups appear in the order their name is first seen and messages keep the
    order of the input sequence. A missing name is its own group keyed by
    ``None``.
    """
    groups: Dict[Optional[str], List[str]] = {}
    for report in reports:
        if report.matter_type != matter_type:
            continue
        groups.setdefault(report.name, []).append(report.description or "")
    return tuple(
        CommunityAggregate(name=name, reports=len(messages), messages=tuple(messages))
        for name, messages in groups.items()
    )


def find_aggregate(
    aggregates: Sequence[CommunityAggregate],
    name: Optional[str],
) -> Optional[CommunityAggregate]:
    for aggregate in aggregates:
        if aggregate.name == name:
            return aggregate
    return None


def merge_stats(stats: Stats, signal: StatSignal, value: int) -> Stats:
    """Fold one signal update into the stats; the other two values are untouched."""
    return replace(stats, **{StatSignal(signal).value: max(0, int(value))})
