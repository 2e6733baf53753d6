from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from ipmonitor.api.pagination import Pagination, parse_page_number
from ipmonitor.api.rendering import render_history_page
from ipmonitor.api.routes.dependencies import get_app_settings, get_store
from ipmonitor.core.config import Settings
from ipmonitor.core.errors import ReadFailure
from ipmonitor.models.record import Record
from ipmonitor.storage.record_store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["history"])


@router.get("/", response_class=HTMLResponse)
def history_page(
  page: Optional[str] = None,
  store: RecordStore = Depends(get_store),
  settings: Settings = Depends(get_app_settings),
) -> HTMLResponse:
  """Render one page of measurement history, newest first."""

  requested_page = parse_page_number(page)
  page_size = settings.page_size

  try:
    total_records = store.count_all()
  except ReadFailure:
    logger.exception("Error fetching total records count")
    pagination = Pagination.build(requested_page, 0, page_size)
    return HTMLResponse(render_history_page([], pagination, error="Could not retrieve record count."))

  pagination = Pagination.build(requested_page, total_records, page_size)

  records: List[Record] = []
  error = None
  try:
    records = store.page(pagination.current_page, page_size)
  except ReadFailure:
    logger.exception("Error fetching records")
    error = "Could not retrieve records."

  return HTMLResponse(render_history_page(records, pagination, error=error))
