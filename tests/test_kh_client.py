"""Tests for the Kuberhealthy client."""

from datetime import datetime, timezone

import httpx
import pytest

from shared.config import Settings
from shared.kh_client import (
    RUN_UUID_HEADER,
    DeadlineUnavailable,
    KuberhealthyClient,
    ReadinessTimeout,
    TransportError,
)

from conftest import REPORTING_URL, RUN_UUID, FakeCollector


class TestReporting:
    async def test_report_success_payload(self, collector):
        await collector.client().report_success()

        assert collector.reports == [{"OK": True, "Errors": []}]
        assert collector.headers[0][RUN_UUID_HEADER] == RUN_UUID

    async def test_report_failure_payload(self, collector):
        await collector.client().report_failure(["Test has failed!"])

        assert collector.reports == [{"OK": False, "Errors": ["Test has failed!"]}]

    async def test_non_200_is_transport_error(self):
        collector = FakeCollector(post_status=400)

        with pytest.raises(TransportError, match=r"\[400\] nope"):
            await collector.client().report_success()
        assert len(collector.reports) == 1

    async def test_connection_errors_are_retried_then_raised(self):
        attempts = []

        def _handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        client = KuberhealthyClient(
            REPORTING_URL,
            RUN_UUID,
            transport=httpx.MockTransport(_handler),
            max_retries=2,
            retry_delay=0.0,
        )

        with pytest.raises(TransportError, match="connection refused"):
            await client.report_success()
        assert len(attempts) == 3

    async def test_connection_error_recovers_on_retry(self):
        reports = []

        def _handler(request: httpx.Request) -> httpx.Response:
            if not reports:
                reports.append("refused")
                raise httpx.ConnectError("connection refused", request=request)
            reports.append("ok")
            return httpx.Response(200)

        client = KuberhealthyClient(
            REPORTING_URL, RUN_UUID, transport=httpx.MockTransport(_handler), retry_delay=0.0
        )

        await client.report_success()
        assert reports == ["refused", "ok"]

    async def test_unparseable_url_is_transport_error(self, collector):
        client = KuberhealthyClient(
            "http://[::1/check", RUN_UUID, transport=httpx.MockTransport(collector.handler)
        )

        with pytest.raises(TransportError, match="failed to send report"):
            await client.report_success()
        assert collector.reports == []

    async def test_missing_reporting_url(self):
        with pytest.raises(TransportError, match="KH_REPORTING_URL"):
            await KuberhealthyClient("").report_success()


class TestDeadline:
    def test_parses_unix_seconds(self):
        client = KuberhealthyClient(REPORTING_URL, deadline="1792324800")
        assert client.get_deadline() == datetime.fromtimestamp(1792324800, tz=timezone.utc)

    @pytest.mark.parametrize("raw", ["", "   ", "soon", "12.5", " 1792324800 ", "1_792_324_800", "\u0661\u0667\u0669\u0662", "-5"])
    def test_unavailable(self, raw):
        with pytest.raises(DeadlineUnavailable):
            KuberhealthyClient(REPORTING_URL, deadline=raw).get_deadline()


class TestReadiness:
    async def test_reachable_returns(self, collector):
        await collector.client().wait_for_kuberhealthy(timeout=1.0)
        assert collector.probes == 1
        assert collector.reports == []

    async def test_client_errors_count_as_reachable(self):
        collector = FakeCollector(get_status=404)
        await collector.client().wait_for_kuberhealthy(timeout=1.0)
        assert collector.probes == 1

    async def test_polls_until_reachable(self):
        statuses = [503, 503, 200]

        def _handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(statuses.pop(0))

        client = KuberhealthyClient(
            REPORTING_URL, transport=httpx.MockTransport(_handler), poll_interval=0.01
        )
        await client.wait_for_kuberhealthy(timeout=1.0)
        assert statuses == []

    async def test_times_out(self):
        collector = FakeCollector(get_status=503)

        with pytest.raises(ReadinessTimeout, match="HTTP 503"):
            await collector.client().wait_for_kuberhealthy(timeout=0.1)
        assert collector.probes >= 2

    async def test_invalid_url(self):
        with pytest.raises(ReadinessTimeout, match="invalid reporting url"):
            await KuberhealthyClient("").wait_for_kuberhealthy(timeout=0.1)

    async def test_unparseable_ipv6_url(self, collector):
        client = KuberhealthyClient(
            "http://[::1/check", transport=httpx.MockTransport(collector.handler)
        )

        with pytest.raises(ReadinessTimeout, match="invalid reporting url"):
            await client.wait_for_kuberhealthy(timeout=0.1)
        assert collector.probes == 0

    async def test_bad_port_url(self, collector):
        client = KuberhealthyClient(
            "http://kuberhealthy:notaport/check", transport=httpx.MockTransport(collector.handler)
        )

        with pytest.raises(ReadinessTimeout, match="invalid reporting url"):
            await client.wait_for_kuberhealthy(timeout=0.1)


def test_from_settings_passes_debug(monkeypatch):
    monkeypatch.setenv("KH_REPORTING_URL", REPORTING_URL)
    monkeypatch.setenv("KH_RUN_UUID", RUN_UUID)
    monkeypatch.setenv("KH_CHECK_RUN_DEADLINE", "1792324800")
    monkeypatch.setenv("KH_DEBUG", "true")

    client = KuberhealthyClient.from_settings(Settings())

    assert client.reporting_url == REPORTING_URL
    assert client.run_uuid == RUN_UUID
    assert client._debug is True
    assert client.get_deadline().year == 2026


def test_from_environ_ignores_bad_debug(monkeypatch):
    monkeypatch.setenv("KH_REPORTING_URL", REPORTING_URL)
    monkeypatch.setenv("KH_DEBUG", "maybe")

    client = KuberhealthyClient.from_environ()

    assert client.reporting_url == REPORTING_URL
    assert client._debug is False
