"""Kuberhealthy check client.

Covers the three things a checker pod needs from Kuberhealthy: the run
deadline, a reachability probe for the collector, and verdict submission.

Usage:
    from shared.kh_client import KuberhealthyClient
    from shared.config import Settings

    client = KuberhealthyClient.from_settings(Settings())

    deadline = client.get_deadline()
    await client.wait_for_kuberhealthy(timeout=60.0)
    await client.report_success()
    await client.report_failure(["disk is full"])
"""

from __future__ import annotations

import asyncio
import os
import re
import time
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlsplit

import httpx

from shared.config import Settings
from shared.log import get_logger
from shared.retry import async_retry

logger = get_logger("kh-client")

RUN_UUID_HEADER = "kh-run-uuid"

_UNIX_SECONDS_RE = re.compile(r"[0-9]+")


class KuberhealthyError(Exception):
    """Base class for errors talking to Kuberhealthy."""


class DeadlineUnavailable(KuberhealthyError):
    """The run deadline is missing or unparseable."""


class ReadinessTimeout(KuberhealthyError):
    """The collector did not become reachable in time."""


class TransportError(KuberhealthyError):
    """A verdict could not be delivered to the collector."""


class KuberhealthyClient:
    """Async client for the Kuberhealthy reporting endpoint."""

    def __init__(
        self,
        reporting_url: str,
        run_uuid: str = "",
        deadline: str = "",
        *,
        debug: bool = False,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        poll_interval: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.reporting_url = reporting_url
        self.run_uuid = run_uuid
        self._deadline_raw = deadline
        self._debug = debug
        self._timeout = timeout
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._poll_interval = poll_interval
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> KuberhealthyClient:
        return cls(
            reporting_url=settings.kh_reporting_url,
            run_uuid=settings.kh_run_uuid,
            deadline=settings.kh_check_run_deadline,
            debug=settings.kh_debug,
            **kwargs,
        )

    @classmethod
    def from_environ(cls, **kwargs: Any) -> KuberhealthyClient:
        """Build from the raw KH_* variables, skipping Settings validation.

        Used to report a configuration failure when Settings itself cannot
        be loaded.
        """
        return cls(
            reporting_url=os.environ.get("KH_REPORTING_URL", ""),
            run_uuid=os.environ.get("KH_RUN_UUID", ""),
            deadline=os.environ.get("KH_CHECK_RUN_DEADLINE", ""),
            **kwargs,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    # --- Deadline ---

    def get_deadline(self) -> datetime:
        """Return the run deadline as an aware UTC datetime."""
        raw = self._deadline_raw
        if not raw:
            raise DeadlineUnavailable("KH_CHECK_RUN_DEADLINE is not set")
        if not _UNIX_SECONDS_RE.fullmatch(raw):
            raise DeadlineUnavailable(f"unable to parse KH_CHECK_RUN_DEADLINE {raw!r}")
        try:
            return datetime.fromtimestamp(int(raw), tz=timezone.utc)
        except (ValueError, OverflowError, OSError) as e:
            raise DeadlineUnavailable(
                f"unable to parse KH_CHECK_RUN_DEADLINE {raw!r}: {e}"
            ) from e

    # --- Readiness ---

    async def wait_for_kuberhealthy(self, timeout: float = 60.0) -> None:
        """Poll the collector until it answers, or raise ReadinessTimeout.

        Any HTTP response below 500 counts as reachable; the probe does not
        submit anything.
        """
        try:
            parts = urlsplit(self.reporting_url)
        except ValueError as e:
            raise ReadinessTimeout(f"invalid reporting url {self.reporting_url!r}: {e}") from e
        if not parts.scheme or not parts.netloc:
            raise ReadinessTimeout(f"invalid reporting url {self.reporting_url!r}")
        probe_url = f"{parts.scheme}://{parts.netloc}/"

        deadline = time.monotonic() + timeout
        attempts = 0
        last_error = "no attempt made"
        async with self._client() as client:
            while True:
                attempts += 1
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                try:
                    resp = await client.get(probe_url, timeout=min(self._timeout, remaining))
                    if resp.status_code < 500:
                        if self._debug:
                            logger.info(
                                "kuberhealthy_reachable",
                                url=probe_url,
                                status=resp.status_code,
                                attempts=attempts,
                            )
                        return
                    last_error = f"HTTP {resp.status_code}"
                except httpx.InvalidURL as e:
                    raise ReadinessTimeout(f"invalid reporting url {self.reporting_url!r}: {e}") from e
                except httpx.HTTPError as e:
                    last_error = str(e) or type(e).__name__

                if self._debug:
                    logger.info(
                        "kuberhealthy_not_reachable",
                        url=probe_url,
                        attempt=attempts,
                        error=last_error,
                    )
                sleep_for = min(self._poll_interval, deadline - time.monotonic())
                if sleep_for <= 0:
                    break
                await asyncio.sleep(sleep_for)

        raise ReadinessTimeout(
            f"kuberhealthy not reachable at {probe_url} after {timeout}s: {last_error}"
        )

    # --- Reporting ---

    async def report_success(self) -> None:
        await self._post_status({"OK": True, "Errors": []})

    async def report_failure(self, errors: list[str]) -> None:
        await self._post_status({"OK": False, "Errors": list(errors)})

    async def _post_status(self, payload: dict[str, Any]) -> None:
        if not self.reporting_url:
            raise TransportError("KH_REPORTING_URL is not set")

        post = async_retry(
            max_retries=self._max_retries,
            base_delay=self._retry_delay,
            exceptions=(httpx.TransportError,),
        )(self._post_once)

        try:
            resp = await post(payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"failed to send report: {e}") from e

        if resp.status_code != 200:
            raise TransportError(
                f"bad status code from kuberhealthy status reporting url: "
                f"[{resp.status_code}] {resp.text[:200]}"
            )

    async def _post_once(self, payload: dict[str, Any]) -> httpx.Response:
        if self._debug:
            logger.info(
                "posting_status",
                url=self.reporting_url,
                run_uuid=self.run_uuid,
                payload=payload,
            )
        async with self._client() as client:
            resp = await client.post(
                self.reporting_url,
                json=payload,
                headers={RUN_UUID_HEADER: self.run_uuid},
            )
        if self._debug:
            logger.info("status_posted", status=resp.status_code)
        return resp
