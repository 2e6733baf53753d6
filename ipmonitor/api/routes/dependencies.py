from __future__ import annotations

from fastapi import Request

from ipmonitor.core.config import Settings
from ipmonitor.storage.record_store import RecordStore


def get_store(request: Request) -> RecordStore:
  store = getattr(request.app.state, "store", None)
  if store is None:
    raise RuntimeError("Record store has not been initialized")
  return store


def get_app_settings(request: Request) -> Settings:
  return request.app.state.settings
