"""In-process store with realtime-database semantics (local runs and tests)."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from .base import (
    ChildFilter,
    ErrorCallback,
    Snapshot,
    SnapshotCallback,
    Store,
    Subscription,
    paths_overlap,
    split_path,
)
from .errors import PermissionDeniedError, StoreError

logger = logging.getLogger(__name__)


@dataclass
class _Listener:
    path: str
    on_snapshot: SnapshotCallback
    on_error: Optional[ErrorCallback]
    child_filter: Optional[ChildFilter]
    closed: bool = field(default=False)


def _prune(value: Any) -> Any:
    """Drop null children and collapse empty objects, as the store does."""
    if isinstance(value, Mapping):
        pruned = {}
        for key, child in value.items():
            child = _prune(child)
            if child is not None:
                pruned[str(key)] = child
        return pruned or None
    return value


def _write(node: Any, segments: list[str], value: Any) -> Any:
    if not segments:
        return _prune(copy.deepcopy(value))
    current = dict(node) if isinstance(node, Mapping) else {}
    head, rest = segments[0], segments[1:]
    child = _write(current.get(head), rest, value)
    if child is None:
        current.pop(head, None)
    else:
        current[head] = child
    return current or None


class InMemoryStore(Store):
    """
    Keeps the whole tree in a dict and pushes snapshots via ``loop.call_soon``.

    Snapshots are captured when a write happens and delivered on a later loop
    iteration, so a writer never observes its own change synchronously. Use
    ``flush()`` to wait until every scheduled delivery has run.
    """

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._root: Any = _prune(copy.deepcopy(dict(data or {})))
        self._listeners: list[_Listener] = []
        self._pending = 0
        self._denied: dict[str, Exception] = {}
        self._write_failures: dict[str, Exception] = {}

    @classmethod
    def from_json_file(cls, path: Path) -> "InMemoryStore":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Seed file {path} must contain a JSON object")
        logger.info("Loaded memory store seed from %s", path)
        return cls(data)

    # -- failure injection -------------------------------------------------

    def deny(self, path: str, exc: Optional[Exception] = None) -> None:
        """Reject subscriptions and writes under ``path``."""
        self._denied[path] = exc or PermissionDeniedError("Permission denied", path=path)

    def fail_writes(self, path: str, exc: Optional[Exception] = None) -> None:
        """Reject writes under ``path`` while subscriptions keep working."""
        self._write_failures[path] = exc or StoreError("Write failed", path=path)

    def clear_failures(self) -> None:
        self._denied.clear()
        self._write_failures.clear()

    @staticmethod
    def _failure_for(path: str, failures: dict[str, Exception]) -> Optional[Exception]:
        for prefix, exc in failures.items():
            if split_path(path)[: len(split_path(prefix))] == split_path(prefix):
                return exc
        return None

    def _check_write(self, path: str) -> None:
        exc = self._failure_for(path, self._denied) or self._failure_for(path, self._write_failures)
        if exc is not None:
            raise exc

    # -- reads -------------------------------------------------------------

    def get(self, path: str = "") -> Any:
        node = self._root
        for segment in split_path(path):
            if not isinstance(node, Mapping):
                return None
            node = node.get(segment)
        return copy.deepcopy(node)

    # -- Store -------------------------------------------------------------

    async def subscribe(
        self,
        path: str,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
        *,
        child_filter: Optional[ChildFilter] = None,
    ) -> Subscription:
        exc = self._failure_for(path, self._denied)
        if exc is not None:
            raise exc
        listener = _Listener(path, on_snapshot, on_error, child_filter)
        self._listeners.append(listener)
        self._schedule(listener)
        return Subscription(path, lambda: self._remove(listener))

    async def update(self, path: str, fields: Mapping[str, Any]) -> None:
        if not fields:
            raise ValueError("update requires at least one field")
        self._check_write(path)
        base = split_path(path)
        for key, value in fields.items():
            self._root = _write(self._root, base + split_path(key), value)
        self._notify(path)

    async def set(self, path: str, record: Any) -> None:
        self._check_write(path)
        self._root = _write(self._root, split_path(path), record)
        self._notify(path)

    async def transaction(self, path: str, update_fn: Callable[[Any], Any]) -> Any:
        self._check_write(path)
        new_value = update_fn(self.get(path))
        self._root = _write(self._root, split_path(path), new_value)
        self._notify(path)
        return copy.deepcopy(new_value)

    async def close(self) -> None:
        for listener in list(self._listeners):
            self._remove(listener)

    async def flush(self) -> None:
        """Wait until all scheduled snapshot deliveries have run."""
        while self._pending:
            await asyncio.sleep(0)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    # -- delivery ----------------------------------------------------------

    def _remove(self, listener: _Listener) -> None:
        listener.closed = True
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, path: str) -> None:
        for listener in list(self._listeners):
            if paths_overlap(listener.path, path):
                self._schedule(listener)

    def _schedule(self, listener: _Listener) -> None:
        snapshot = Snapshot.from_value(listener.path, self.get(listener.path), listener.child_filter)
        self._pending += 1
        asyncio.get_running_loop().call_soon(self._deliver, listener, snapshot)

    def _deliver(self, listener: _Listener, snapshot: Snapshot) -> None:
        self._pending -= 1
        if listener.closed:
            return
        try:
            listener.on_snapshot(snapshot)
        except Exception as e:
            logger.error("Error in snapshot callback for %s: %s", listener.path, e)
            if listener.on_error is not None:
                listener.on_error(e)
