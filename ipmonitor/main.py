from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from ipmonitor.adapters.ip_lookup import IPLookupClient
from ipmonitor.adapters.speed_probe import SpeedProbe
from ipmonitor.api.routes import health, history
from ipmonitor.core.config import Settings, get_settings
from ipmonitor.storage.record_store import RecordStore
from ipmonitor.worker.collector import MetricsCollector
from ipmonitor.worker.scheduler import CheckScheduler, Collector, start_scheduler

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"
SHUTDOWN_TIMEOUT_S = 5.0


def create_app(
  settings: Optional[Settings] = None,
  *,
  store: Optional[RecordStore] = None,
  collector: Optional[Collector] = None,
  run_scheduler: bool = True,
) -> FastAPI:
  """Build the web app; the record store and the check scheduler come up on startup."""

  settings = settings or get_settings()
  app = FastAPI(title="IP Monitor")
  app.state.settings = settings
  app.state.store = store
  app.state.scheduler = None
  app.state.scheduler_task = None
  app.state.ip_lookup = None

  @app.on_event("startup")
  async def _startup() -> None:
    if app.state.store is None:
      logger.info("Database will be stored at: %s", settings.database_path)
      # StorageUnavailable propagates: the service cannot run without a store.
      app.state.store = RecordStore.initialize(settings.database_path)

    if not run_scheduler:
      return

    check_collector = collector
    if check_collector is None:
      ip_lookup = IPLookupClient(settings.ip_lookup_url, request_timeout_s=settings.ip_lookup_timeout_s)
      speed_probe = SpeedProbe(timeout_s=settings.speedtest_timeout_s)
      check_collector = MetricsCollector(ip_lookup, speed_probe)
      app.state.ip_lookup = ip_lookup
    scheduler = CheckScheduler(
      check_collector,
      app.state.store,
      interval_seconds=settings.check_interval_seconds,
    )
    app.state.scheduler = scheduler
    app.state.scheduler_task = start_scheduler(scheduler)

  @app.on_event("shutdown")
  async def _shutdown() -> None:
    scheduler: Optional[CheckScheduler] = app.state.scheduler
    task: Optional[asyncio.Task] = app.state.scheduler_task
    if scheduler is not None:
      scheduler.stop()
    if task is not None:
      # In-flight checks are not awaited; the loop is cancelled wherever it is.
      task.cancel()
      try:
        await asyncio.wait_for(task, timeout=SHUTDOWN_TIMEOUT_S)
      except asyncio.CancelledError:
        logger.info("Check scheduler stopped")
      except asyncio.TimeoutError:
        logger.warning("Check scheduler did not shut down cleanly")
    if app.state.ip_lookup is not None:
      app.state.ip_lookup.close()
    if app.state.store is not None and store is None:
      app.state.store.close()

  app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
  app.include_router(health.router)
  app.include_router(history.router)
  return app
