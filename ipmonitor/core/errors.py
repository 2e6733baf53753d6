"""Error kinds raised by the measurement sources and the record store."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for every error raised by the monitor."""


class LookupFailure(MonitorError):
    """The public IP echo request failed or timed out."""


class ProbeFailure(MonitorError):
    """A step of the speed probe (discovery, ping, download, upload) failed."""


class StorageUnavailable(MonitorError):
    """The record store could not be created or opened."""


class WriteFailure(MonitorError):
    """A record could not be appended to the store."""


class ReadFailure(MonitorError):
    """Records could not be counted or read back from the store."""
