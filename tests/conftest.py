"""Pytest configuration and fixtures."""

from __future__ import annotations

import json

import httpx
import pytest

from shared.kh_client import KuberhealthyClient

REPORTING_URL = "http://kuberhealthy.kuberhealthy.svc.cluster.local/check"
RUN_UUID = "0f5c3d2a-run"

_CHECK_ENV = (
    "REPORT_FAILURE",
    "REPORT_DELAY",
    "KH_REPORTING_URL",
    "KH_RUN_UUID",
    "KH_CHECK_RUN_DEADLINE",
    "KH_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without any check variables set."""
    for name in _CHECK_ENV:
        monkeypatch.delenv(name, raising=False)


class FakeCollector:
    """Stands in for Kuberhealthy behind an httpx.MockTransport."""

    def __init__(self, post_status: int = 200, get_status: int = 200) -> None:
        self.post_status = post_status
        self.get_status = get_status
        self.reports: list[dict] = []
        self.headers: list[httpx.Headers] = []
        self.probes = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            self.probes += 1
            return httpx.Response(self.get_status)
        self.reports.append(json.loads(request.read().decode("utf-8")))
        self.headers.append(request.headers)
        return httpx.Response(self.post_status, text="nope" if self.post_status != 200 else "")

    def client(self, deadline: str = "", **kwargs) -> KuberhealthyClient:
        kwargs.setdefault("retry_delay", 0.0)
        kwargs.setdefault("poll_interval", 0.01)
        return KuberhealthyClient(
            REPORTING_URL,
            RUN_UUID,
            deadline,
            transport=httpx.MockTransport(self.handler),
            **kwargs,
        )


@pytest.fixture
def collector() -> FakeCollector:
    return FakeCollector()


class RecordingClient:
    """Client double that records verdicts instead of sending them."""

    reporting_url = REPORTING_URL

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, list[str] | None]] = []

    async def report_success(self) -> None:
        self.calls.append(("success", None))
        if self.error:
            raise self.error

    async def report_failure(self, errors: list[str]) -> None:
        self.calls.append(("failure", list(errors)))
        if self.error:
            raise self.error
