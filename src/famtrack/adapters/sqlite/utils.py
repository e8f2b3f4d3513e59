"""Utility functions for the SQLite adapter."""

from __future__ import annotations

import functools
import sqlite3
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, ParamSpec, TypeVar

from famtrack.utils.clock import ensure_utc
from famtrack.utils.logger import get_logger

logger = get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def generate_uuid() -> str:
    """Generate a new UUID as string.

    Returns:
        UUID string (e.g., "123e4567-e89b-12d3-a456-426614174000")
    """
    return str(uuid.uuid4())


def format_datetime(value: datetime) -> str:
    """Serialize a datetime for storage.

    Values are normalised to UTC and always carry microseconds, so stored
    strings have a fixed width and compare chronologically in SQL.
    """
    return ensure_utc(value).isoformat(timespec="microseconds")


def row_to_dict(row: Any) -> dict[str, Any]:
    """Convert sqlite3.Row to dictionary.

    Args:
        row: sqlite3.Row object

    Returns:
        Dictionary with column names as keys
    """
    if row is None:
        return {}
    return dict(row)


def build_update_clause(updates: dict[str, Any]) -> tuple[str, list[Any]]:
    """Build SQL UPDATE SET clause from updates dictionary.

    Args:
        updates: Dictionary of column names to new values (None values are skipped)

    Returns:
        Tuple of (SET clause string, parameters list)
    """
    set_parts = []
    params = []

    for key, value in updates.items():
        if value is not None:
            set_parts.append(f"{key} = ?")
            params.append(value)

    return ", ".join(set_parts), params


def degrade_on_store_error(
    default_factory: Callable[[], T],
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Make an async read return ``default_factory()`` when the store fails.

    Only for reads: a failed write must reach the caller.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except sqlite3.Error as e:
                logger.error("store read failed in %s: %s", func.__qualname__, e)
                return default_factory()

        return wrapper

    return decorator
