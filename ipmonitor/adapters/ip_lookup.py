from __future__ import annotations

import logging
from typing import Optional

import requests

from ipmonitor.core.errors import LookupFailure

DEFAULT_IP_LOOKUP_URL = "https://api.ipify.org"


class IPLookupClient:
  """Asks a public IP echo service which address our requests come from."""

  def __init__(
    self,
    url: str = DEFAULT_IP_LOOKUP_URL,
    *,
    logger: Optional[logging.Logger] = None,
    session: Optional[requests.Session] = None,
    request_timeout_s: float = 10.0,
  ) -> None:
    self._url = url
    self._logger = logger or logging.getLogger(__name__)
    self._http_session = session or requests.Session()
    self._request_timeout_s = request_timeout_s

  def lookup(self) -> str:
    """Return the public IP address as reported by the echo service."""
    try:
      response = self._http_session.get(
        self._url,
        headers={"accept": "text/plain"},
        timeout=self._request_timeout_s,
      )
      response.raise_for_status()
    except requests.Timeout as exc:
      raise LookupFailure(f"timed out after {self._request_timeout_s:g}s") from exc
    except requests.RequestException as exc:
      raise LookupFailure(str(exc)) from exc

    ip_address = response.text.strip()
    if not ip_address:
      raise LookupFailure(f"empty response from {self._url}")
    self._logger.debug("IP echo answered %s", ip_address)
    return ip_address

  def close(self) -> None:
    if self._http_session is not None:
      self._http_session.close()
      self._http_session = None
