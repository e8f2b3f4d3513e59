"""Shared utilities (clock, logging)."""

from .clock import Clock, FixedClock, SystemClock, ensure_utc
from .logger import get_logger

__all__ = ["Clock", "FixedClock", "SystemClock", "ensure_utc", "get_logger"]
