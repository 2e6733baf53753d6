from __future__ import annotations

from sqlalchemy import Column, DateTime, Float, Integer, Text

from ipmonitor.core.db import Base


class NetworkRecordRow(Base):
    __tablename__ = "network_records"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    ip_address = Column(Text, nullable=True)
    latency_ms = Column(Float, nullable=True)
    download_mbps = Column(Float)
    upload_mbps = Column(Float)
    error = Column(Text)
