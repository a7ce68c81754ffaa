"""Tests for the in-memory store adapter."""

from __future__ import annotations

import json

import pytest

from report_admin.storage import (
    ChildFilter,
    InMemoryStore,
    PermissionDeniedError,
    Snapshot,
    StoreError,
)
from report_admin.storage.base import join_path, paths_overlap, split_path


def test_path_helpers():
    assert split_path("/users//u1/") == ["users", "u1"]
    assert join_path("users", "u1/notifications", "r1") == "users/u1/notifications/r1"
    assert paths_overlap("reports", "reports/r1")
    assert paths_overlap("reports/r1", "reports")
    assert not paths_overlap("reports", "users/u1")


def test_snapshot_from_value_drops_nulls_and_filters():
    value = {"a": {"status": "resolved"}, "b": None, "c": {"status": "pending"}, "d": {"status": "resolved"}}

    snapshot = Snapshot.from_value("reports", value, ChildFilter("status", "resolved"))

    assert snapshot.keys() == ["a", "d"]
    assert snapshot.size == 2
    assert Snapshot.from_value("reports", None).size == 0


def test_from_json_file(tmp_path, seed_tree):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps(seed_tree))

    store = InMemoryStore.from_json_file(path)

    assert store.get("reports/r1/name") == "Alice"


def test_from_json_file_rejects_non_object(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        InMemoryStore.from_json_file(path)


@pytest.mark.asyncio
async def test_subscribe_delivers_initial_and_change_snapshots(seed_tree):
    store = InMemoryStore(seed_tree)
    seen = []

    await store.subscribe("users", seen.append)
    assert seen == []
    await store.flush()
    assert [s.size for s in seen] == [3]

    await store.set("users/u4", {"name": "Dana"})
    await store.flush()
    assert [s.size for s in seen] == [3, 4]


@pytest.mark.asyncio
async def test_filtered_subscription(seed_tree):
    store = InMemoryStore(seed_tree)
    seen = []
    await store.subscribe("reports", seen.append, child_filter=ChildFilter("status", "resolved"))

    await store.update("reports/r1", {"status": "resolved"})
    await store.flush()

    assert [s.keys() for s in seen] == [["r2"], ["r1", "r2"]]


@pytest.mark.asyncio
async def test_update_merges_fields(seed_tree):
    store = InMemoryStore(seed_tree)

    await store.update("users/u1", {"blocked": True, "profile/city": "Oslo"})

    assert store.get("users/u1") == {"name": "Alice", "blocked": True, "profile": {"city": "Oslo"}}


@pytest.mark.asyncio
async def test_update_requires_fields(seed_tree):
    store = InMemoryStore(seed_tree)
    with pytest.raises(ValueError):
        await store.update("users/u1", {})


@pytest.mark.asyncio
async def test_set_replaces_and_null_deletes(seed_tree):
    store = InMemoryStore(seed_tree)

    await store.set("users/u1", {"name": "Alicia"})
    assert store.get("users/u1") == {"name": "Alicia"}

    await store.set("users/u1", None)
    assert store.get("users/u1") is None
    assert sorted(store.get("users")) == ["u2", "u3"]


@pytest.mark.asyncio
async def test_unrelated_write_does_not_notify(seed_tree):
    store = InMemoryStore(seed_tree)
    seen = []
    await store.subscribe("users", seen.append)
    await store.flush()

    await store.update("reports/r1", {"status": "resolved"})
    await store.flush()

    assert len(seen) == 1


@pytest.mark.asyncio
async def test_transaction_can_abort(seed_tree):
    store = InMemoryStore(seed_tree)

    def _abort(current):
        raise StoreError("nope")

    with pytest.raises(StoreError):
        await store.transaction("reports/r1", _abort)
    assert store.get("reports/r1/status") == "pending"

    result = await store.transaction("reports/r1", lambda current: {**current, "status": "resolved"})
    assert result["status"] == "resolved"


@pytest.mark.asyncio
async def test_denied_path_rejects_subscribe_and_writes(seed_tree):
    store = InMemoryStore(seed_tree)
    store.deny("users")

    with pytest.raises(PermissionDeniedError):
        await store.subscribe("users", lambda snapshot: None)
    with pytest.raises(PermissionDeniedError):
        await store.update("users/u1", {"blocked": True})

    store.clear_failures()
    await store.update("users/u1", {"blocked": True})
    assert store.get("users/u1/blocked") is True


@pytest.mark.asyncio
async def test_closed_subscription_receives_nothing(seed_tree):
    store = InMemoryStore(seed_tree)
    seen = []
    subscription = await store.subscribe("users", seen.append)
    subscription.close()
    subscription.close()

    await store.flush()

    assert subscription.closed is True
    assert seen == []
    assert store.listener_count == 0


@pytest.mark.asyncio
async def test_callback_error_goes_to_error_handler(seed_tree):
    store = InMemoryStore(seed_tree)
    errors = []

    def _boom(snapshot):
        raise RuntimeError("bad callback")

    await store.subscribe("users", _boom, errors.append)
    await store.flush()

    assert len(errors) == 1
    assert isinstance(errors[0], RuntimeError)
