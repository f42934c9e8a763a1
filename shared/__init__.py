"""Shared library for Kuberhealthy checks."""

from shared.config import Settings
from shared.kh_client import KuberhealthyClient
from shared.log import get_logger

__all__ = ["KuberhealthyClient", "Settings", "get_logger"]
