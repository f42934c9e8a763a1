"""Tests for verdict reporting."""

from datetime import timedelta

import pytest

from config import ConfigError, RunConfig
from reporter import FAILURE_REASON, report_check_result, report_failure_and_exit
from shared.kh_client import TransportError

from conftest import RecordingClient


def _cfg(report_failure: bool) -> RunConfig:
    return RunConfig(
        report_failure=report_failure,
        report_delay=timedelta(0),
        time_limit=timedelta(minutes=10),
    )


class TestReportCheckResult:
    async def test_reports_success(self):
        client = RecordingClient()
        await report_check_result(client, _cfg(False))
        assert client.calls == [("success", None)]

    async def test_reports_failure_reason(self):
        client = RecordingClient()
        await report_check_result(client, _cfg(True))
        assert client.calls == [("failure", ["Test has failed!"])]
        assert FAILURE_REASON == "Test has failed!"

    async def test_transport_error_propagates_unchanged(self):
        err = TransportError("bad status code")
        client = RecordingClient(error=err)

        with pytest.raises(TransportError) as exc_info:
            await report_check_result(client, _cfg(False))

        assert exc_info.value is err
        assert len(client.calls) == 1


class TestReportFailureAndExit:
    async def test_reports_error_message_and_exits(self):
        client = RecordingClient()
        err = ConfigError("failed to parse REPORT_FAILURE env var: bad")

        with pytest.raises(SystemExit) as exc_info:
            await report_failure_and_exit(client, err)

        assert exc_info.value.code == 1
        assert client.calls == [("failure", [str(err)])]

    async def test_exits_even_if_report_fails(self):
        client = RecordingClient(error=TransportError("unreachable"))

        with pytest.raises(SystemExit) as exc_info:
            await report_failure_and_exit(client, ConfigError("bad"))

        assert exc_info.value.code == 1
        assert client.calls == [("failure", ["bad"])]
