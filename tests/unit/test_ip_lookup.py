import pytest
import requests

from ipmonitor.adapters.ip_lookup import IPLookupClient
from ipmonitor.core.errors import LookupFailure


class FakeResponse:
	def __init__(self, text: str, status_code: int = 200) -> None:
		self.text = text
		self.status_code = status_code

	def raise_for_status(self) -> None:
		if self.status_code >= 400:
			raise requests.HTTPError(f"{self.status_code} Server Error")


class FakeSession:
	def __init__(self, response: FakeResponse | None = None, failure: Exception | None = None) -> None:
		self.response = response
		self.failure = failure
		self.requests: list[tuple[str, float]] = []
		self.closed = False

	def get(self, url, headers=None, timeout=None):
		self.requests.append((url, timeout))
		if self.failure is not None:
			raise self.failure
		return self.response

	def close(self) -> None:
		self.closed = True


def test_lookup_returns_stripped_address_and_bounds_wait() -> None:
	session = FakeSession(FakeResponse("203.0.113.7\n"))
	client = IPLookupClient("https://ip.example.test", session=session, request_timeout_s=4.0)

	assert client.lookup() == "203.0.113.7"
	assert session.requests == [("https://ip.example.test", 4.0)]


def test_timeout_becomes_timeout_flavoured_lookup_failure() -> None:
	session = FakeSession(failure=requests.ConnectTimeout("connect timeout"))
	client = IPLookupClient(session=session, request_timeout_s=10.0)

	with pytest.raises(LookupFailure, match="timed out after 10s"):
		client.lookup()


def test_connection_error_becomes_lookup_failure() -> None:
	session = FakeSession(failure=requests.ConnectionError("Name or service not known"))

	with pytest.raises(LookupFailure, match="Name or service not known") as excinfo:
		IPLookupClient(session=session).lookup()
	assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_http_error_status_becomes_lookup_failure() -> None:
	session = FakeSession(FakeResponse("", status_code=503))

	with pytest.raises(LookupFailure, match="503"):
		IPLookupClient(session=session).lookup()


def test_empty_body_is_a_failure() -> None:
	session = FakeSession(FakeResponse("   "))

	with pytest.raises(LookupFailure, match="empty response"):
		IPLookupClient(session=session).lookup()


def test_close_releases_session() -> None:
	session = FakeSession(FakeResponse("203.0.113.7"))
	client = IPLookupClient(session=session)

	client.close()

	assert session.closed
