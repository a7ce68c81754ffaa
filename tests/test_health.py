"""Tests for the health/metrics server and the dashboard entry point helpers."""

from __future__ import annotations

import asyncio
import json

import pytest
from aiohttp.test_utils import TestClient, TestServer

from report_admin.config import Config
from report_admin.dashboard.main import _retry_outbox_loop, build_store
from report_admin.monitoring.health import HealthServer, render_metrics
from report_admin.storage import InMemoryStore


def test_render_metrics_prefixes_numeric_fields():
    text = render_metrics({"status": "ok", "active": True, "total_reports": 5, "outbox-pending": 2})

    assert text.splitlines() == [
        "report_admin_active 1",
        "report_admin_total_reports 5",
        "report_admin_outbox_pending 2",
    ]


def test_render_metrics_empty():
    assert render_metrics({"status": "ok"}) == 'report_admin_status{state="empty"} 1\n'


@pytest.mark.asyncio
async def test_health_endpoints():
    server = HealthServer("127.0.0.1", 0, lambda: {"total_users": 3, "resolved_reports": 1})

    async with TestClient(TestServer(server.app)) as client:
        resp = await client.get("/healthz")
        assert resp.status == 200
        assert await resp.json() == {"total_users": 3, "resolved_reports": 1, "status": "ok"}

        resp = await client.get("/metrics")
        assert "report_admin_total_users 3" in await resp.text()


@pytest.mark.asyncio
async def test_health_provider_failure_reports_error():
    def _broken() -> dict:
        raise RuntimeError("boom")

    server = HealthServer("127.0.0.1", 0, _broken)

    async with TestClient(TestServer(server.app)) as client:
        data = await (await client.get("/healthz")).json()
        assert data == {"status": "error", "message": "boom"}


@pytest.mark.asyncio
async def test_disabled_health_server_does_not_bind():
    server = HealthServer("127.0.0.1", 0, dict, enabled=False)
    await server.start()
    assert server._runner is None
    await server.stop()


def test_build_store_memory_with_seed(tmp_path, seed_tree):
    seed = tmp_path / "seed.json"
    seed.write_text(json.dumps(seed_tree))

    store = build_store(Config(store_backend="memory", store_seed_file=str(seed)))

    assert isinstance(store, InMemoryStore)
    assert store.get("users/u3/name") == "Carol"
    assert isinstance(build_store(Config(store_backend="memory")), InMemoryStore)


class _CountingViewModel:
    def __init__(self):
        self.calls = 0

    async def retry_pending_notifications(self) -> int:
        self.calls += 1
        return 0


@pytest.mark.asyncio
async def test_retry_loop_runs_until_stopped():
    view_model = _CountingViewModel()
    stop_event = asyncio.Event()

    task = asyncio.create_task(_retry_outbox_loop(view_model, 0.01, stop_event))
    await asyncio.sleep(0.05)
    stop_event.set()
    await asyncio.wait_for(task, timeout=1)

    assert view_model.calls >= 1
