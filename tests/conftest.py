"""Pytest fixtures for txthook test suite."""

import json
import logging
import logging.handlers
import os
import re
from collections.abc import Generator

import httpx
import pytest
import respx

from txthook.config import Settings
from txthook.linode import LinodeClient

API_URL = "https://api.linode.com/v4"
API_TOKEN = "test-token"

# Real Linode account for integration tests
LINODE_API_TOKEN = os.environ.get("LINODE_API_TOKEN")
TEST_DOMAIN = os.environ.get("TXTHOOK_TEST_DOMAIN")


@pytest.fixture
def api_url() -> str:
    """Return the Linode API base URL used by mocked tests."""
    return API_URL


@pytest.fixture
def settings() -> Settings:
    """Settings for mocked tests (propagation wait disabled)."""
    return Settings(api_token=API_TOKEN, api_url=API_URL, wait_for_propagation=False)


@pytest.fixture
def client(settings: Settings) -> Generator[LinodeClient]:
    """Linode client pointed at the mocked API."""
    with LinodeClient.from_settings(settings) as client:
        yield client


@pytest.fixture(scope="session")
def linode_api_token() -> str:
    """Return the real Linode API token, or skip."""
    if not LINODE_API_TOKEN:
        pytest.skip("LINODE_API_TOKEN not set")
    return LINODE_API_TOKEN


@pytest.fixture(scope="session")
def test_domain() -> str:
    """Return a domain managed by the real Linode account, or skip."""
    if not TEST_DOMAIN:
        pytest.skip("TXTHOOK_TEST_DOMAIN not set")
    return TEST_DOMAIN


class FakeLinodeApi:
    """In-memory Linode domains API served through respx.

    Args:
        zones: Zone id -> zone name.
    """

    def __init__(self, zones: dict[int, str]) -> None:
        self.zones = zones
        self.records: dict[int, dict[int, dict]] = {zone_id: {} for zone_id in zones}
        self._next_id = 1000

    def install(self, router: respx.MockRouter) -> None:
        base = re.escape(API_URL)
        router.get(f"{API_URL}/domains").mock(side_effect=self._list_domains)
        router.get(url__regex=rf"{base}/domains/(?P<zone_id>\d+)/records").mock(
            side_effect=self._list_records
        )
        router.post(url__regex=rf"{base}/domains/(?P<zone_id>\d+)/records").mock(
            side_effect=self._create_record
        )
        router.delete(url__regex=rf"{base}/domains/(?P<zone_id>\d+)/records/(?P<record_id>\d+)").mock(
            side_effect=self._delete_record
        )

    def txt_records(self, zone_id: int) -> list[dict]:
        """Return the TXT records currently stored in a zone."""
        return [r for r in self.records[zone_id].values() if r["type"] == "TXT"]

    def _page(self, data: list[dict]) -> httpx.Response:
        return httpx.Response(200, json={"data": data, "page": 1, "pages": 1, "results": len(data)})

    def _list_domains(self, request: httpx.Request) -> httpx.Response:
        return self._page([{"id": i, "domain": name, "type": "master"} for i, name in self.zones.items()])

    def _list_records(self, request: httpx.Request, zone_id: str) -> httpx.Response:
        if int(zone_id) not in self.records:
            return httpx.Response(404, json={"errors": [{"reason": "Not found"}]})
        return self._page(list(self.records[int(zone_id)].values()))

    def _create_record(self, request: httpx.Request, zone_id: str) -> httpx.Response:
        body = json.loads(request.content)
        self._next_id += 1
        record = {"id": self._next_id, **body}
        self.records[int(zone_id)][self._next_id] = record
        return httpx.Response(200, json=record)

    def _delete_record(self, request: httpx.Request, zone_id: str, record_id: str) -> httpx.Response:
        if self.records[int(zone_id)].pop(int(record_id), None) is None:
            return httpx.Response(404, json={"errors": [{"reason": "Not found"}]})
        return httpx.Response(200, json={})


@pytest.fixture
def fake_api() -> Generator[FakeLinodeApi]:
    """Fake Linode account with zones example.com and sub.example.org."""
    api = FakeLinodeApi({1: "example.com", 2: "sub.example.org"})
    with respx.mock(assert_all_called=False) as router:
        api.install(router)
        yield api


class LogCapture:
    """Helper class to capture and inspect log records."""

    def __init__(self, handler: logging.handlers.MemoryHandler) -> None:
        self._handler = handler

    @property
    def records(self) -> list[logging.LogRecord]:
        """Get all captured log records."""
        return self._handler.buffer

    def get_records(
        self, level: int | None = None, name: str | None = None
    ) -> list[logging.LogRecord]:
        """Get log records filtered by level and/or logger name.

        Args:
            level: Filter by log level (e.g., logging.INFO).
            name: Filter by logger name prefix (e.g., "txthook.linode").

        Returns:
            List of matching log records.
        """
        records = self.records
        if level is not None:
            records = [r for r in records if r.levelno == level]
        if name is not None:
            records = [r for r in records if r.name.startswith(name)]
        return records

    def get_messages(self, level: int | None = None, name: str | None = None) -> list[str]:
        """Get log messages filtered by level and/or logger name."""
        return [r.getMessage() for r in self.get_records(level, name)]

    def clear(self) -> None:
        """Clear all captured log records."""
        self._handler.buffer.clear()


@pytest.fixture
def log_capture() -> Generator[LogCapture]:
    """Capture logs from txthook during a test.

    Usage:
        def test_something(log_capture):
            # do something that logs
            assert "TXT record created" in log_capture.get_messages(logging.INFO)
    """
    handler = logging.handlers.MemoryHandler(capacity=1000)
    handler.setLevel(logging.DEBUG)

    txthook_logger = logging.getLogger("txthook")
    original_level = txthook_logger.level
    txthook_logger.setLevel(logging.DEBUG)
    txthook_logger.addHandler(handler)

    try:
        yield LogCapture(handler)
    finally:
        txthook_logger.removeHandler(handler)
        txthook_logger.setLevel(original_level)
        handler.close()
