from __future__ import annotations

import logging
from datetime import timedelta, timezone
from pathlib import Path
from typing import List

from sqlalchemy import Engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ipmonitor.core.db import create_session_factory, create_sqlite_engine, get_session, init_db
from ipmonitor.core.errors import ReadFailure, StorageUnavailable, WriteFailure
from ipmonitor.models.db_models import NetworkRecordRow
from ipmonitor.models.record import Record

logger = logging.getLogger(__name__)


class RecordStore:
    """Append-only SQLite log of measurement records.

    Every call opens its own session, so reads always see the latest committed
    writes. A single handle is shared by the scheduler (the only writer) and
    the reporting routes (readers); SQLite's WAL mode keeps them apart.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._session_factory: sessionmaker[Session] = create_session_factory(engine)

    @classmethod
    def initialize(cls, path: str) -> "RecordStore":
        """Open or create the store at ``path`` and make sure the table exists."""

        db_dir = Path(path).parent
        try:
            db_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f"failed to create database directory {db_dir}: {exc}") from exc

        try:
            engine = create_sqlite_engine(path)
            init_db(engine)
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"failed to open database {path}: {exc}") from exc

        logger.info("Record store ready at %s", path)
        return cls(engine)

    def append(self, record: Record) -> Record:
        """Persist ``record`` and return a copy carrying its assigned id."""

        row = _to_row(record)
        with get_session(self._session_factory) as session:
            try:
                session.add(row)
                session.commit()
                record_id = row.id
            except SQLAlchemyError as exc:
                session.rollback()
                raise WriteFailure(f"failed to insert record: {exc}") from exc
        return record.with_id(record_id)

    def count_all(self) -> int:
        with get_session(self._session_factory) as session:
            try:
                return session.scalar(select(func.count()).select_from(NetworkRecordRow)) or 0
            except SQLAlchemyError as exc:
                raise ReadFailure(f"failed to count records: {exc}") from exc

    def page(self, page_number: int, page_size: int) -> List[Record]:
        """Return one window of records, newest first.

        A window past the end of the data yields an empty list; clamping the
        page number is left to the caller.
        """

        if page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {page_number}")
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")

        query = (
            select(NetworkRecordRow)
            .order_by(NetworkRecordRow.timestamp.desc(), NetworkRecordRow.id.desc())
            .limit(page_size)
            .offset((page_number - 1) * page_size)
        )
        with get_session(self._session_factory) as session:
            try:
                rows = session.scalars(query).all()
            except SQLAlchemyError as exc:
                raise ReadFailure(f"failed to query records: {exc}") from exc
            return [_from_row(row) for row in rows]

    def close(self) -> None:
        self._engine.dispose()


def _to_row(record: Record) -> NetworkRecordRow:
    # SQLite has no timezone support; timestamps are stored as naive UTC.
    timestamp = record.timestamp.astimezone(timezone.utc).replace(tzinfo=None)
    return NetworkRecordRow(
        timestamp=timestamp,
        ip_address=record.ip_address,
        latency_ms=record.latency_ms,
        download_mbps=record.download_mbps,
        upload_mbps=record.upload_mbps,
        error=record.error,
    )


def _from_row(row: NetworkRecordRow) -> Record:
    latency = None
    if row.latency_ms is not None:
        latency = timedelta(milliseconds=row.latency_ms)
    return Record(
        id=row.id,
        timestamp=row.timestamp.replace(tzinfo=timezone.utc),
        ip_address=row.ip_address or "",
        latency=latency,
        download_mbps=row.download_mbps or 0.0,
        upload_mbps=row.upload_mbps or 0.0,
        error=row.error or "",
    )
