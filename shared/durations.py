"""Parsing for Go-style duration strings ("5s", "1m30s", "250ms", "-1.5h").

Kuberhealthy check definitions pass durations in this format, so checks read them
the same way rather than as plain seconds.
"""

from __future__ import annotations

import re
from datetime import timedelta
from decimal import Decimal

_UNIT_NANOS = {
    "ns": Decimal(1),
    "us": Decimal(1_000),
    "µs": Decimal(1_000),  # micro sign
    "μs": Decimal(1_000),  # greek mu
    "ms": Decimal(1_000_000),
    "s": Decimal(1_000_000_000),
    "m": Decimal(60_000_000_000),
    "h": Decimal(3_600_000_000_000),
}

_COMPONENT = r"([0-9]+\.?[0-9]*|\.[0-9]+)(ns|us|µs|μs|ms|s|m|h)"
_DURATION_RE = re.compile(rf"[-+]?(?:{_COMPONENT})+")
_COMPONENT_RE = re.compile(_COMPONENT)

# Durations are int64 nanoseconds, as in Kuberhealthy itself
_MAX_NANOS = (1 << 63) - 1


def parse_duration(value: str) -> timedelta:
    """Parse *value* into a timedelta, truncated to microseconds.

    Raises ValueError for anything that is not a valid duration string,
    including values outside the signed 64-bit nanosecond range.
    A bare "0" (optionally signed) is accepted without a unit.
    """
    if value in ("0", "+0", "-0"):
        return timedelta(0)
    if not _DURATION_RE.fullmatch(value):
        raise ValueError(f'invalid duration "{value}"')

    sign = -1 if value.startswith("-") else 1
    nanos = sum(
        Decimal(number) * _UNIT_NANOS[unit]
        for number, unit in _COMPONENT_RE.findall(value)
    )
    if nanos > _MAX_NANOS + (1 if sign < 0 else 0):
        raise ValueError(f'invalid duration "{value}": out of range')
    return timedelta(microseconds=sign * int(nanos / 1000))


def format_duration(value: timedelta) -> str:
    """Render a timedelta compactly, e.g. "19m55s" or "1h0m0s"."""
    total_us = int(value / timedelta(microseconds=1))
    sign = "-" if total_us < 0 else ""
    total_us = abs(total_us)
    if total_us == 0:
        return "0s"
    if total_us < 1_000_000:
        if total_us % 1000 == 0:
            return f"{sign}{total_us // 1000}ms"
        return f"{sign}{total_us}us"

    hours, rem = divmod(total_us, 3_600_000_000)
    minutes, rem = divmod(rem, 60_000_000)
    seconds = Decimal(rem) / Decimal(1_000_000)
    sec_text = f"{seconds.normalize():f}s"
    if hours:
        return f"{sign}{hours}h{minutes}m{sec_text}"
    if minutes:
        return f"{sign}{minutes}m{sec_text}"
    return f"{sign}{sec_text}"
