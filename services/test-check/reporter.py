"""Verdict submission for the test check.

Each function submits exactly once; retries on connection errors belong to
the client transport, not here.
"""

from __future__ import annotations

from typing import NoReturn

from shared.kh_client import KuberhealthyClient, KuberhealthyError
from shared.log import get_logger

from config import RunConfig

logger = get_logger("test-check.reporter")

FAILURE_REASON = "Test has failed!"


async def report_check_result(client: KuberhealthyClient, cfg: RunConfig) -> None:
    """Report the configured verdict. Transport errors propagate unchanged."""
    if cfg.report_failure:
        logger.info("reporting_failure")
        await client.report_failure([FAILURE_REASON])
        return

    logger.info("reporting_success")
    await client.report_success()


async def report_failure_and_exit(client: KuberhealthyClient, err: Exception) -> NoReturn:
    """Report *err* as the check failure, then exit 1 whatever happens."""
    logger.error("check_config_invalid", error=str(err))

    try:
        await client.report_failure([str(err)])
    except KuberhealthyError as report_err:
        logger.error("error_reporting_to_kuberhealthy", error=str(report_err))

    raise SystemExit(1)
