"""Diagnostic tool for the test check.

Shows what the check would do in this pod without submitting a verdict.

Usage:
    python diagnose.py
    python diagnose.py --step config
    python diagnose.py --step deadline
    python diagnose.py --step reachability
    python diagnose.py --step all
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import traceback
from datetime import datetime, timezone

from shared.durations import format_duration
from shared.kh_client import DeadlineUnavailable, KuberhealthyClient, ReadinessTimeout
from shared.log import setup_logging

setup_logging("DEBUG")

PASS = "\033[92m PASS \033[0m"
FAIL = "\033[91m FAIL \033[0m"
WARN = "\033[93m WARN \033[0m"
INFO = "\033[94m INFO \033[0m"


def header(title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")


def result(label: str, ok: bool, detail: str = "") -> None:
    status = PASS if ok else FAIL
    print(f"  [{status}] {label}")
    if detail:
        for line in detail.strip().split("\n"):
            print(f"         {line}")


def info(label: str, detail: str = "") -> None:
    print(f"  [{INFO}] {label}")
    if detail:
        for line in detail.strip().split("\n"):
            print(f"         {line}")


def warn(label: str, detail: str = "") -> None:
    print(f"  [{WARN}] {label}")
    if detail:
        for line in detail.strip().split("\n"):
            print(f"         {line}")


# -- Step: Config ──────────────────────────────────────────────

def check_config() -> dict:
    header("Configuration")
    try:
        from config import load_settings
        s = load_settings()
        result("Config loaded", True)

        checks = {
            "REPORT_FAILURE": str(s.report_failure),
            "REPORT_DELAY": format_duration(s.report_delay),
            "KH_REPORTING_URL": s.kh_reporting_url or "(empty)",
            "KH_RUN_UUID": s.kh_run_uuid or "(empty)",
            "KH_CHECK_RUN_DEADLINE": s.kh_check_run_deadline or "(empty)",
            "KH_DEBUG": str(s.kh_debug),
            "LOG_LEVEL": s.log_level,
        }
        for key, val in checks.items():
            print(f"         {key} = {val}")

        if not s.kh_reporting_url:
            warn("KH_REPORTING_URL is empty: reports cannot be delivered")
        if not s.kh_run_uuid:
            warn("KH_RUN_UUID is empty: Kuberhealthy will reject reports")

        return {"settings": s}

    except Exception:
        result("Config loaded", False, traceback.format_exc())
        return {}


# -- Step: Deadline ────────────────────────────────────────────

def check_deadline(client: KuberhealthyClient) -> None:
    header("Deadline")
    from config import DEFAULT_TIME_LIMIT, compute_time_limit

    try:
        deadline = client.get_deadline()
    except DeadlineUnavailable as e:
        warn("Deadline unavailable", f"{e}\nCheck would use {format_duration(DEFAULT_TIME_LIMIT)}")
        return

    result("Deadline", True, deadline.isoformat())
    limit = compute_time_limit(deadline, datetime.now(timezone.utc))
    if limit.total_seconds() > 0:
        info("Time limit", format_duration(limit))
    else:
        warn("Deadline too soon", f"Check would use {format_duration(DEFAULT_TIME_LIMIT)}")


# -- Step: Reachability ────────────────────────────────────────

async def check_reachability(client: KuberhealthyClient) -> None:
    header("Kuberhealthy reachability")
    try:
        await client.wait_for_kuberhealthy(timeout=5.0)
        result("Collector reachable", True, client.reporting_url)
    except ReadinessTimeout as e:
        result("Collector reachable", False, str(e))


async def main() -> None:
    parser = argparse.ArgumentParser(description="Test check diagnostic tool")
    parser.add_argument(
        "--step",
        choices=["config", "deadline", "reachability", "all"],
        default="all",
        help="Which check to run (default: all)",
    )
    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("  TEST CHECK DIAGNOSTIC TOOL")
    print("=" * 60)

    ctx = check_config()
    settings = ctx.get("settings")
    if not settings:
        print("\n  Cannot proceed without valid config. Fix the environment first.")
        sys.exit(1)

    client = KuberhealthyClient.from_settings(settings, max_retries=0)

    if args.step in ("all", "deadline"):
        check_deadline(client)

    if args.step in ("all", "reachability"):
        await check_reachability(client)

    print(f"\n{'='*60}")
    print("  DONE")
    print(f"{'='*60}\n")


if __name__ == "__main__":
    asyncio.run(main())
