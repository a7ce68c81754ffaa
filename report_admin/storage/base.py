"""Store interface consumed by the dashboard.

The store is an external realtime database. This module only describes the
subscribe/update/set contract and the snapshot value handed to subscribers;
adapters live in ``memory.py`` and ``firebase.py``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping, Optional

logger = logging.getLogger(__name__)


def split_path(path: str) -> list[str]:
    return [part for part in (path or "").split("/") if part]


def join_path(*parts: str) -> str:
    return "/".join(segment for part in parts for segment in split_path(str(part)))


def paths_overlap(a: str, b: str) -> bool:
    """True when one path is an ancestor of (or equal to) the other."""
    left, right = split_path(a), split_path(b)
    size = min(len(left), len(right))
    return left[:size] == right[:size]


@dataclass(frozen=True)
class ChildFilter:
    """Equality match on a named child field, evaluated by the store."""

    field: str
    value: Any

    def matches(self, record: Any) -> bool:
        return isinstance(record, Mapping) and record.get(self.field) == self.value


@dataclass(frozen=True)
class Snapshot:
    """Full point-in-time materialization of a subscribed collection."""

    path: str
    children: tuple[tuple[str, Any], ...] = ()

    @classmethod
    def from_value(
        cls,
        path: str,
        value: Any,
        child_filter: Optional[ChildFilter] = None,
        *,
        sort_key: Optional[Callable[[str], Any]] = None,
    ) -> "Snapshot":
        if not isinstance(value, Mapping):
            return cls(path=path)
        items = [(str(key), child) for key, child in value.items() if child is not None]
        if child_filter is not None:
            items = [(key, child) for key, child in items if child_filter.matches(child)]
        if sort_key is not None:
            items.sort(key=lambda item: sort_key(item[0]))
        return cls(path=path, children=tuple(items))

    @property
    def size(self) -> int:
        return len(self.children)

    def keys(self) -> list[str]:
        return [key for key, _ in self.children]

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return iter(self.children)


SnapshotCallback = Callable[[Snapshot], None]
ErrorCallback = Callable[[Exception], None]


class Subscription:
    """Handle for a live listener; ``close()`` releases it on the store side."""

    def __init__(self, path: str, close_fn: Optional[Callable[[], None]] = None):
        self.path = path
        self._close_fn = close_fn
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._close_fn is not None:
            self._close_fn()
        logger.debug("Subscription to %s closed", self.path)


class Store:
    """
    Push-based realtime store.

    ``subscribe`` delivers an initial snapshot and then a new full snapshot on
    every change under ``path``. Callbacks always run on the event loop that
    opened the subscription. ``update`` is a merge write (only the named fields
    change), ``set`` replaces the value at ``path``.
    """

    async def subscribe(
        self,
        path: str,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
        *,
        child_filter: Optional[ChildFilter] = None,
    ) -> Subscription:
        raise NotImplementedError

    async def update(self, path: str, fields: Mapping[str, Any]) -> None:
        raise NotImplementedError

    async def set(self, path: str, record: Any) -> None:
        raise NotImplementedError

    async def transaction(self, path: str, update_fn: Callable[[Any], Any]) -> Any:
        """Compare-and-set write; ``update_fn`` may raise to abort."""
        raise NotImplementedError

    async def close(self) -> None:
        return None
