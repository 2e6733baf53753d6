from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
  return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Record:
  """One measurement event: public IP plus speed-test results and failure text."""

  timestamp: datetime
  ip_address: str = ""
  latency: Optional[timedelta] = None
  download_mbps: float = 0.0
  upload_mbps: float = 0.0
  error: str = ""
  id: Optional[int] = None

  def __post_init__(self) -> None:
    if self.timestamp is None:
      raise ValueError("Record timestamp is required")
    if self.timestamp.tzinfo is None:
      object.__setattr__(self, "timestamp", self.timestamp.replace(tzinfo=timezone.utc))
    if self.download_mbps < 0 or self.upload_mbps < 0:
      raise ValueError("Throughput values must be non-negative")

  @property
  def succeeded(self) -> bool:
    return self.error == ""

  @property
  def latency_ms(self) -> Optional[float]:
    if self.latency is None:
      return None
    return self.latency / timedelta(milliseconds=1)

  def with_id(self, record_id: int) -> "Record":
    return replace(self, id=record_id)
