from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Protocol

from ipmonitor.adapters.speed_probe import ProbeResult
from ipmonitor.models.record import Record, utc_now

logger = logging.getLogger(__name__)

ERROR_SEPARATOR = "; "


class IPLookup(Protocol):
    def lookup(self) -> str:
        ...


class NetworkProbe(Protocol):
    def run(self) -> ProbeResult:
        ...


class CheckErrors:
    """Collects failure causes of one check; joined once the check is over."""

    def __init__(self) -> None:
        self._messages: List[str] = []

    def add(self, message: str) -> None:
        self._messages.append(message)

    def joined(self) -> str:
        return ERROR_SEPARATOR.join(self._messages)


class MetricsCollector:
    """Runs one IP lookup and one speed probe and folds both outcomes into a Record.

    ``collect`` never raises. Each source may fail on its own; whatever the
    other one measured is still kept and the failure text ends up in
    ``Record.error``.
    """

    def __init__(
        self,
        ip_lookup: IPLookup,
        speed_probe: NetworkProbe,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._ip_lookup = ip_lookup
        self._speed_probe = speed_probe
        self._clock = clock or utc_now

    def collect(self) -> Record:
        # Stamped before either measurement runs.
        timestamp = self._clock()
        errors = CheckErrors()

        ip_address = ""
        try:
            ip_address = self._ip_lookup.lookup()
        except Exception as exc:
            message = f"IP check failed: {exc}"
            errors.add(message)
            logger.warning(message)
        else:
            logger.info("Public IP: %s", ip_address)

        latency: Optional[timedelta] = None
        download_mbps = 0.0
        upload_mbps = 0.0
        try:
            result = self._speed_probe.run()
        except Exception as exc:
            message = f"Speed test failed: {exc}"
            errors.add(message)
            logger.warning(message)
        else:
            latency = result.latency
            download_mbps = max(0.0, result.download_mbps)
            upload_mbps = max(0.0, result.upload_mbps)
            logger.info(
                "Latency: %.0f ms, Download: %.2f Mbps, Upload: %.2f Mbps",
                latency / timedelta(milliseconds=1),
                download_mbps,
                upload_mbps,
            )

        return Record(
            timestamp=timestamp,
            ip_address=ip_address,
            latency=latency,
            download_mbps=download_mbps,
            upload_mbps=upload_mbps,
            error=errors.joined(),
        )
