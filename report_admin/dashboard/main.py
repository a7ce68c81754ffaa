"""Standalone admin dashboard process.

Run:
  python -m report_admin.dashboard.main
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path

from ..config import Config, load_config, validate_config
from ..monitoring.health import HealthServer
from ..storage import InMemoryStore, NotificationOutbox, Store
from .server import DashboardConfig, DashboardServer
from .view_model import ReportAggregationViewModel, WriteMode

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def build_store(config: Config) -> Store:
    """Create the store adapter selected by ``STORE_BACKEND``."""
    if config.store_backend == "memory":
        if config.store_seed_file:
            return InMemoryStore.from_json_file(Path(config.store_seed_file))
        logger.info("Using empty in-memory store")
        return InMemoryStore()

    from ..storage.firebase import FirebaseStore, initialize_app

    app = initialize_app(config.firebase_service_account, config.firebase_database_url)
    return FirebaseStore(app)


async def _retry_outbox_loop(
    view_model: ReportAggregationViewModel,
    interval_seconds: int,
    stop_event: asyncio.Event,
) -> None:
    """Re-send queued notifications every ``interval_seconds`` until stopped."""
    while not stop_event.is_set():
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
            return
        except asyncio.TimeoutError:
            pass
        try:
            await view_model.retry_pending_notifications()
        except Exception as e:
            logger.warning("Outbox retry failed: %s", e)


async def run_dashboard() -> None:
    config = load_config()
    errors = validate_config(config)
    if errors:
        for error in errors:
            logger.error("Config error: %s", error)
        sys.exit(1)

    store = build_store(config)

    outbox = NotificationOutbox(config.outbox_path)
    await outbox.connect()

    view_model = ReportAggregationViewModel(
        store,
        outbox=outbox,
        matter_type=config.community_matter_type,
        notification=config.notification,
        write_mode=WriteMode(config.report_write_mode),
    )

    server = DashboardServer(
        config=DashboardConfig(
            enabled=True,
            host=config.dashboard_host,
            port=config.dashboard_port,
            admin_user=config.dashboard_admin_user,
            admin_password=config.dashboard_admin_password,
        ),
        view_model=view_model,
    )
    health = HealthServer(
        host=config.health_host,
        port=config.health_port,
        status_provider=view_model.status,
        enabled=config.health_enabled,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loop does not support add_signal_handler.
            pass

    await view_model.activate()
    await server.start()
    await health.start()
    logger.info("Dashboard running on http://%s:%s/admin", config.dashboard_host, config.dashboard_port)

    retry_task: asyncio.Task | None = None
    if config.outbox_retry_interval_seconds > 0:
        retry_task = asyncio.create_task(
            _retry_outbox_loop(view_model, config.outbox_retry_interval_seconds, stop_event)
        )

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down dashboard...")
        if retry_task is not None:
            retry_task.cancel()
            try:
                await retry_task
            except asyncio.CancelledError:
                pass
        await view_model.deactivate()
        await health.stop()
        await server.stop()
        await store.close()
        await outbox.close()


def main() -> None:
    asyncio.run(run_dashboard())


if __name__ == "__main__":
    main()
