"""SQLite implementation of ParentalControlRepository."""

from __future__ import annotations

import sqlite3
from datetime import time, timedelta
from typing import Any

from famtrack.adapters.sqlite.connection import get_connection, run_in_transaction
from famtrack.adapters.sqlite.utils import (
    build_update_clause,
    degrade_on_store_error,
    format_datetime,
    generate_uuid,
    row_to_dict,
)
from famtrack.models import (
    ParentalControl,
    ParentalControlCreate,
    ParentalControlUpdate,
    TimeWindow,
    TimeWindowCreate,
)
from famtrack.models.exceptions import ControlAlreadyExistsError
from famtrack.repositories import ParentalControlRepository
from famtrack.utils.clock import Clock, SystemClock
from famtrack.utils.logger import get_logger

logger = get_logger(__name__)

_BOOL_FIELDS = (
    "screen_time_enabled",
    "task_approval_required",
    "point_spending_approval_required",
    "can_invite_others",
    "chat_monitoring_enabled",
)


def _format_time(value: time) -> str:
    # Fixed width so windows sort by start time in SQL
    return value.isoformat(timespec="microseconds")


class SqliteParentalControlRepository(ParentalControlRepository):
    """SQLite implementation of parental control repository."""

    def __init__(
        self,
        db_path: str | None = None,
        clock: Clock | None = None,
        connection: sqlite3.Connection | None = None,
        max_retries: int = 3,
    ):
        """Initialize SQLite parental control repository.

        Args:
            db_path: Optional database file path. If None, uses the configured location.
            clock: Source of timestamps (system clock by default)
            connection: Pre-opened connection, used instead of *db_path* (tests)
            max_retries: Attempts for transactions hitting lock contention
        """
        self.db_path = db_path
        self.clock = clock or SystemClock()
        self.max_retries = max_retries
        self._connection = connection

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = get_connection(self.db_path)
        return self._connection

    def _load_windows(self, control_id: str) -> list[TimeWindow]:
        cursor = self.connection.execute(
            """SELECT * FROM time_windows WHERE parental_control_id = ?
               ORDER BY day_of_week, start_time""",
            (control_id,),
        )
        return [TimeWindow(**row_to_dict(row)) for row in cursor.fetchall()]

    def _row_to_control(self, row: sqlite3.Row) -> ParentalControl:
        data = row_to_dict(row)
        minutes = data.pop("daily_time_limit_minutes")
        return ParentalControl(
            **data,
            daily_time_limit=timedelta(minutes=minutes),
            allowed_hours=self._load_windows(data["id"]),
        )

    @staticmethod
    def _insert_windows(
        conn: sqlite3.Connection, control_id: str, windows: list[TimeWindowCreate]
    ) -> None:
        conn.executemany(
            """INSERT INTO time_windows
                   (id, parental_control_id, day_of_week, start_time, end_time, is_active)
               VALUES (?, ?, ?, ?, ?, ?)""",
            [
                (
                    generate_uuid(),
                    control_id,
                    int(window.day_of_week),
                    _format_time(window.start_time),
                    _format_time(window.end_time),
                    int(window.is_active),
                )
                for window in windows
            ],
        )

    @degrade_on_store_error(lambda: None)
    async def get_by_id(self, control_id: str) -> ParentalControl | None:
        row = self.connection.execute(
            "SELECT * FROM parental_controls WHERE id = ?", (control_id,)
        ).fetchone()
        return self._row_to_control(row) if row else None

    @degrade_on_store_error(lambda: None)
    async def get_by_child(self, child_user_id: str) -> ParentalControl | None:
        row = self.connection.execute(
            "SELECT * FROM parental_controls WHERE child_user_id = ?", (child_user_id,)
        ).fetchone()
        return self._row_to_control(row) if row else None

    @degrade_on_store_error(list)
    async def list_by_parent(self, parent_user_id: str) -> list[ParentalControl]:
        cursor = self.connection.execute(
            """SELECT pc.* FROM parental_controls pc
               LEFT JOIN users u ON u.id = pc.child_user_id
               WHERE pc.parent_user_id = ?
               ORDER BY u.username, pc.created_at""",
            (parent_user_id,),
        )
        return [self._row_to_control(row) for row in cursor.fetchall()]

    async def create(
        self, parent_user_id: str, data: ParentalControlCreate
    ) -> ParentalControl:
        """Create a control and its windows in a single transaction."""
        control_id = generate_uuid()
        now = format_datetime(self.clock.now())

        def work(conn: sqlite3.Connection) -> None:
            try:
                conn.execute(
                    """INSERT INTO parental_controls
                           (id, parent_user_id, child_user_id, screen_time_enabled,
                            daily_time_limit_minutes, task_approval_required,
                            point_spending_approval_required, can_invite_others,
                            chat_monitoring_enabled, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        control_id,
                        parent_user_id,
                        data.child_user_id,
                        int(data.screen_time_enabled),
                        int(data.daily_time_limit.total_seconds() // 60),
                        int(data.task_approval_required),
                        int(data.point_spending_approval_required),
                        int(data.can_invite_others),
                        int(data.chat_monitoring_enabled),
                        now,
                        now,
                    ),
                )
            except sqlite3.IntegrityError as e:
                if "parental_controls.child_user_id" in str(e):
                    raise ControlAlreadyExistsError(data.child_user_id) from e
                raise
            self._insert_windows(conn, control_id, data.allowed_hours)

        run_in_transaction(self.connection, work, self.max_retries)
        logger.debug("stored parental control %s for child %s", control_id, data.child_user_id)
        return await self.get_by_id(control_id)

    async def update(
        self, control_id: str, updates: ParentalControlUpdate
    ) -> ParentalControl | None:
        """Update provided fields; a given window list replaces the stored one."""
        fields: dict[str, Any] = {}
        for name in _BOOL_FIELDS:
            value = getattr(updates, name)
            if value is not None:
                fields[name] = int(value)
        if updates.daily_time_limit is not None:
            fields["daily_time_limit_minutes"] = int(
                updates.daily_time_limit.total_seconds() // 60
            )
        fields["updated_at"] = format_datetime(self.clock.now())

        set_clause, params = build_update_clause(fields)

        def work(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute(
                f"UPDATE parental_controls SET {set_clause} WHERE id = ?",
                [*params, control_id],
            )
            if cursor.rowcount == 0:
                return False
            if updates.allowed_hours is not None:
                conn.execute(
                    "DELETE FROM time_windows WHERE parental_control_id = ?", (control_id,)
                )
                self._insert_windows(conn, control_id, updates.allowed_hours)
            return True

        if not run_in_transaction(self.connection, work, self.max_retries):
            return None
        return await self.get_by_id(control_id)

    async def delete(self, control_id: str) -> bool:
        def work(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute("DELETE FROM parental_controls WHERE id = ?", (control_id,))
            return cursor.rowcount > 0

        return run_in_transaction(self.connection, work, self.max_retries)

    @degrade_on_store_error(lambda: False)
    async def exists(self, child_user_id: str) -> bool:
        row = self.connection.execute(
            "SELECT 1 FROM parental_controls WHERE child_user_id = ?", (child_user_id,)
        ).fetchone()
        return row is not None

    @degrade_on_store_error(lambda: False)
    async def is_direct_parent(self, parent_user_id: str, child_user_id: str) -> bool:
        row = self.connection.execute(
            "SELECT 1 FROM parental_controls WHERE parent_user_id = ? AND child_user_id = ?",
            (parent_user_id, child_user_id),
        ).fetchone()
        return row is not None

    @degrade_on_store_error(lambda: None)
    async def get_parent_user_id(self, child_user_id: str) -> str | None:
        row = self.connection.execute(
            "SELECT parent_user_id FROM parental_controls WHERE child_user_id = ?",
            (child_user_id,),
        ).fetchone()
        return row["parent_user_id"] if row else None
