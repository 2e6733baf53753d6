from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status

from ipmonitor.api.routes.dependencies import get_store
from ipmonitor.core.errors import ReadFailure
from ipmonitor.storage.record_store import RecordStore

router = APIRouter(tags=["health"])


@router.get("/health")
def healthcheck(store: RecordStore = Depends(get_store)) -> Dict[str, Any]:
	"""Liveness probe that also proves the record store is readable."""

	try:
		records = store.count_all()
	except ReadFailure as exc:
		raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
	return {"status": "ok", "records": records}
