from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Tuple

import speedtest

from ipmonitor.core.errors import ProbeFailure

BITS_PER_MEGABIT = 1_000_000
CLOSEST_SERVER_LIMIT = 5


@dataclass(frozen=True)
class ProbeResult:
  latency: timedelta
  download_mbps: float
  upload_mbps: float


SpeedtestFactory = Callable[..., Any]


class SpeedProbe:
  """Runs one speedtest.net measurement: discover, pick a server, ping, download, upload.

  The first failing step aborts the run; download and upload figures mean
  nothing without a reachable server and a round-trip estimate.
  """

  def __init__(
    self,
    *,
    logger: Optional[logging.Logger] = None,
    client_factory: Optional[SpeedtestFactory] = None,
    timeout_s: float = 10.0,
    secure: bool = True,
  ) -> None:
    self._logger = logger or logging.getLogger(__name__)
    self._client_factory = client_factory or speedtest.Speedtest
    self._timeout_s = timeout_s
    self._secure = secure

  def run(self) -> ProbeResult:
    client = self._step("could not fetch server list", self._discover_servers)
    candidates = self._step(
      "could not find a suitable server",
      lambda: client.get_closest_servers(limit=CLOSEST_SERVER_LIMIT),
    )
    if not candidates:
      raise ProbeFailure("could not find a suitable server: no servers available")

    best, latency_ms = self._step("ping test failed", lambda: _ping(client, candidates))
    self._logger.debug(
      "Selected speed test server", extra={"server": best.get("host"), "latency_ms": latency_ms}
    )

    download_bps = self._step("download test failed", client.download)
    upload_bps = self._step("upload test failed", lambda: client.upload(pre_allocate=False))

    return ProbeResult(
      latency=timedelta(milliseconds=latency_ms),
      download_mbps=_to_mbps(download_bps),
      upload_mbps=_to_mbps(upload_bps),
    )

  def _discover_servers(self) -> Any:
    client = self._client_factory(timeout=self._timeout_s, secure=self._secure)
    client.get_servers()
    return client

  def _step(self, failure_prefix: str, action: Callable[[], Any]) -> Any:
    try:
      return action()
    except ProbeFailure:
      raise
    except Exception as exc:
      raise ProbeFailure(f"{failure_prefix}: {_describe(exc)}") from exc


def _ping(client: Any, candidates: Any) -> Tuple[Dict[str, Any], float]:
  best = client.get_best_server(candidates)
  return best, float(best["latency"])


def _to_mbps(bits_per_second: Optional[float]) -> float:
  if not bits_per_second or bits_per_second < 0:
    return 0.0
  return bits_per_second / BITS_PER_MEGABIT


def _describe(exc: BaseException) -> str:
  message = str(exc) or exc.__class__.__name__
  if isinstance(exc, TimeoutError) and "timed out" not in message.lower():
    return f"timed out: {message}"
  return message
