"""Test Check: a synthetic Kuberhealthy check.

Validates the Kuberhealthy pipeline itself (scheduling, pod launch, result
collection) rather than any real workload:
  - Resolves REPORT_FAILURE / REPORT_DELAY and the run deadline
  - Arms a timeout watcher that exits 1 if the deadline would be missed
  - Sleeps REPORT_DELAY to simulate a slow check
  - Waits (bounded) for the collector to be reachable
  - Reports success, or "Test has failed!" when REPORT_FAILURE is set

Exit codes: 0 after a delivered report; 1 on bad configuration, a failed
report, or a timeout.
"""

from __future__ import annotations

import asyncio
import sys

from shared.durations import format_duration
from shared.kh_client import KuberhealthyClient, KuberhealthyError, ReadinessTimeout
from shared.log import get_logger

from config import ConfigError, SyntheticCheckSettings, load_settings, resolve_config
from reporter import report_check_result, report_failure_and_exit
from watcher import TimeoutWatcher

READINESS_TIMEOUT_SECONDS = 60.0


class SyntheticCheck:
    name = "test-check"

    def __init__(
        self,
        settings: SyntheticCheckSettings | None = None,
        client: KuberhealthyClient | None = None,
        watcher: TimeoutWatcher | None = None,
        readiness_timeout: float = READINESS_TIMEOUT_SECONDS,
    ) -> None:
        self.logger = get_logger(self.name)
        self._settings = settings
        self._client = client
        self.watcher = watcher or TimeoutWatcher()
        self._readiness_timeout = readiness_timeout

    async def run(self) -> int:
        try:
            settings = self._settings or load_settings()
            client = self._client or KuberhealthyClient.from_settings(settings)
            cfg = resolve_config(client, settings)
        except ConfigError as e:
            await report_failure_and_exit(
                self._client or KuberhealthyClient.from_environ(), e
            )

        self.logger.info("using_reporting_url", url=client.reporting_url)

        # Armed before the delay so a delay longer than the limit still trips it
        self.watcher.arm(cfg.time_limit)
        try:
            self.logger.info(
                "waiting_before_reporting",
                delay=format_duration(cfg.report_delay),
            )
            await asyncio.sleep(max(cfg.report_delay.total_seconds(), 0))

            try:
                await client.wait_for_kuberhealthy(timeout=self._readiness_timeout)
            except ReadinessTimeout as e:
                self.logger.warning("kuberhealthy_not_contactable", error=str(e))

            try:
                await report_check_result(client, cfg)
            except KuberhealthyError as e:
                self.logger.error("error_reporting_to_kuberhealthy", error=str(e))
                return 1
        finally:
            self.watcher.disarm()

        self.logger.info("reported_to_kuberhealthy")
        return 0


def main() -> None:
    sys.exit(asyncio.run(SyntheticCheck().run()))


if __name__ == "__main__":
    main()
