"""Test check configuration.

Extends the base Settings with the knobs that shape the synthetic run and
resolves them, together with the Kuberhealthy deadline, into a RunConfig.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError, field_validator

from shared.config import Settings as BaseSettings
from shared.durations import format_duration, parse_duration
from shared.kh_client import DeadlineUnavailable, KuberhealthyClient
from shared.log import get_logger

logger = get_logger("test-check.config")

TIME_LIMIT_SKEW = timedelta(seconds=5)  # Headroom for the report call itself
DEFAULT_TIME_LIMIT = timedelta(minutes=10)
DEFAULT_REPORT_DELAY = timedelta(seconds=5)

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}

_ENV_NAMES = {"report_failure": "REPORT_FAILURE", "report_delay": "REPORT_DELAY"}


class ConfigError(ValueError):
    """The check environment is malformed."""


def parse_bool(value: str) -> bool:
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f'invalid boolean "{value}"')


class SyntheticCheckSettings(BaseSettings):
    # --- Synthetic outcome ---
    report_failure: bool = False  # Force a failure verdict
    report_delay: timedelta = DEFAULT_REPORT_DELAY  # Simulated work before reporting

    @field_validator("report_failure", mode="before")
    @classmethod
    def _parse_report_failure(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_bool(value) if value else False
        return value

    @field_validator("report_delay", mode="before")
    @classmethod
    def _parse_report_delay(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value) if value else DEFAULT_REPORT_DELAY
        return value


@dataclass(frozen=True)
class RunConfig:
    report_failure: bool
    report_delay: timedelta
    time_limit: timedelta


def load_settings() -> SyntheticCheckSettings:
    """Read SyntheticCheckSettings, turning validation failures into ConfigError."""
    try:
        return SyntheticCheckSettings()
    except ValidationError as e:
        err = e.errors()[0]
        field = str(err["loc"][0]) if err.get("loc") else ""
        env = _ENV_NAMES.get(field, field.upper())
        reason = err.get("ctx", {}).get("error") or err["msg"]
        raise ConfigError(f"failed to parse {env} env var: {reason}") from e


def compute_time_limit(
    deadline: datetime,
    now: datetime,
    skew: timedelta = TIME_LIMIT_SKEW,
) -> timedelta:
    return deadline - (now + skew)


def get_time_limit(
    client: KuberhealthyClient,
    now: datetime | None = None,
) -> timedelta:
    """Time left before the deadline, minus skew.

    Raises DeadlineUnavailable when the deadline is missing or already too
    close; callers fall back to DEFAULT_TIME_LIMIT.
    """
    deadline = client.get_deadline()
    now = now or datetime.now(timezone.utc)
    time_limit = compute_time_limit(deadline, now)
    if time_limit <= timedelta(0):
        raise DeadlineUnavailable("check deadline is too soon to honor")
    return time_limit


def resolve_config(
    client: KuberhealthyClient,
    settings: SyntheticCheckSettings | None = None,
    now: datetime | None = None,
) -> RunConfig:
    """Build the RunConfig for this run.

    Malformed REPORT_FAILURE / REPORT_DELAY raise ConfigError. A missing or
    past deadline only logs a warning and uses the default time limit.
    """
    settings = settings or load_settings()

    try:
        time_limit = get_time_limit(client, now)
    except DeadlineUnavailable as e:
        logger.warning(
            "deadline_unavailable",
            error=str(e),
            fallback=format_duration(DEFAULT_TIME_LIMIT),
        )
        time_limit = DEFAULT_TIME_LIMIT

    return RunConfig(
        report_failure=settings.report_failure,
        report_delay=settings.report_delay,
        time_limit=time_limit,
    )
