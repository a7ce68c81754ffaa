"""Firebase Realtime Database adapter."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
from typing import Any, Callable, Mapping, Optional

import firebase_admin
from firebase_admin import credentials, db
from firebase_admin import exceptions as firebase_exceptions

from .base import (
    ChildFilter,
    ErrorCallback,
    Snapshot,
    SnapshotCallback,
    Store,
    Subscription,
    split_path,
)
from .errors import ConcurrentModificationError, PermissionDeniedError, StoreError

logger = logging.getLogger(__name__)

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


def load_service_account(raw: str) -> dict:
    """Accept inline service-account JSON or a path to the JSON file."""
    value = (raw or "").strip()
    if not value:
        raise ValueError("Firebase service account is not configured")
    if not value.startswith("{") and os.path.isfile(value):
        with open(value, encoding="utf-8") as f:
            value = f.read()
    data = json.loads(value)
    if not isinstance(data, dict) or not data.get("project_id"):
        raise ValueError("Firebase service account must be a JSON object with project_id")
    return data


def initialize_app(
    service_account: str,
    database_url: str = "",
    *,
    name: str = "[DEFAULT]",
) -> firebase_admin.App:
    """Initialize (or reuse) the Firebase app for the given credentials."""
    try:
        return firebase_admin.get_app(name)
    except ValueError:
        pass
    account = load_service_account(service_account)
    url = database_url or f"https://{account['project_id']}.firebaseio.com"
    app = firebase_admin.initialize_app(
        credentials.Certificate(account),
        {"databaseURL": url},
        name=name,
    )
    logger.info("Firebase app initialized for %s", url)
    return app


def key_order(key: str) -> tuple:
    """Default child ordering: 32-bit integer keys numerically, then strings."""
    try:
        number = int(key)
    except ValueError:
        return (1, 0, key)
    if str(number) == key and _INT32_MIN <= number <= _INT32_MAX:
        return (0, number, "")
    return (1, 0, key)


def _put(node: Any, segments: list[str], value: Any) -> Any:
    if not segments:
        return copy.deepcopy(value)
    current = dict(node) if isinstance(node, Mapping) else {}
    head, rest = segments[0], segments[1:]
    child = _put(current.get(head), rest, value)
    if child is None or child == {}:
        current.pop(head, None)
    else:
        current[head] = child
    return current or None


def apply_event(mirror: Any, event_type: str, path: str, data: Any) -> Any:
    """Apply a ``listen`` event to a locally mirrored value and return the new value."""
    segments = split_path(path)
    if event_type == "put":
        return _put(mirror, segments, data)
    if event_type == "patch":
        for key, value in (data or {}).items():
            mirror = _put(mirror, segments + split_path(key), value)
        return mirror
    return mirror


def _wrap_error(exc: Exception, path: str) -> StoreError:
    if isinstance(exc, StoreError):
        return exc
    if isinstance(exc, firebase_exceptions.PermissionDeniedError):
        return PermissionDeniedError(str(exc), path=path)
    if isinstance(exc, db.TransactionAbortedError):
        return ConcurrentModificationError(str(exc), path=path)
    return StoreError(str(exc) or exc.__class__.__name__, path=path)


class FirebaseStore(Store):
    """
    Store backed by ``firebase_admin.db``.

    ``Reference.listen`` calls back on SDK threads with put/patch events. Each
    subscription keeps a mirror of its path, applies events to it, and hands a
    full snapshot to the owning loop with ``call_soon_threadsafe``. Filtered
    subscriptions re-run the ``order_by_child().equal_to()`` query on every
    event so the filter is evaluated by the database.
    """

    def __init__(self, app: Optional[firebase_admin.App] = None):
        self._app = app
        self._subscriptions: list[Subscription] = []

    def _ref(self, path: str) -> db.Reference:
        return db.reference("/" + "/".join(split_path(path)), app=self._app)

    async def subscribe(
        self,
        path: str,
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
        *,
        child_filter: Optional[ChildFilter] = None,
    ) -> Subscription:
        loop = asyncio.get_running_loop()
        ref = self._ref(path)
        mirror: dict[str, Any] = {"value": None}

        def _load_filtered() -> Any:
            query = ref.order_by_child(child_filter.field).equal_to(child_filter.value)
            return query.get()

        def _on_event(event: db.Event) -> None:
            # Runs on the SDK listener thread.
            try:
                mirror["value"] = apply_event(mirror["value"], event.event_type, event.path, event.data)
                value = _load_filtered() if child_filter is not None else mirror["value"]
                snapshot = Snapshot.from_value(path, value, child_filter, sort_key=key_order)
            except Exception as e:
                logger.error("Error processing %s event for %s: %s", event.event_type, path, e)
                if on_error is not None and not loop.is_closed():
                    loop.call_soon_threadsafe(on_error, _wrap_error(e, path))
                return
            if not loop.is_closed():
                loop.call_soon_threadsafe(on_snapshot, snapshot)

        try:
            registration = await asyncio.to_thread(ref.listen, _on_event)
        except Exception as e:
            raise _wrap_error(e, path) from e

        subscription = Subscription(path, registration.close)
        self._subscriptions.append(subscription)
        logger.info("Listening on %s%s", path, f" ({child_filter.field}={child_filter.value})" if child_filter else "")
        return subscription

    async def update(self, path: str, fields: Mapping[str, Any]) -> None:
        try:
            await asyncio.to_thread(self._ref(path).update, dict(fields))
        except (ValueError, TypeError):
            raise
        except Exception as e:
            raise _wrap_error(e, path) from e

    async def set(self, path: str, record: Any) -> None:
        try:
            await asyncio.to_thread(self._ref(path).set, record)
        except (ValueError, TypeError):
            raise
        except Exception as e:
            raise _wrap_error(e, path) from e

    async def transaction(self, path: str, update_fn: Callable[[Any], Any]) -> Any:
        try:
            return await asyncio.to_thread(self._ref(path).transaction, update_fn)
        except Exception as e:
            raise _wrap_error(e, path) from e

    async def close(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            await asyncio.to_thread(subscription.close)
