"""SQLite implementation of the append-only usage ledger."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta

from famtrack.adapters.sqlite.connection import get_connection, run_in_transaction
from famtrack.adapters.sqlite.utils import (
    degrade_on_store_error,
    format_datetime,
    generate_uuid,
    row_to_dict,
)
from famtrack.models import SCREEN_TIME_TAG, UsageRecord
from famtrack.repositories import UsageLedgerRepository
from famtrack.utils.clock import Clock, SystemClock, ensure_utc


class SqliteUsageLedgerRepository(UsageLedgerRepository):
    """SQLite implementation of the usage ledger.

    Rows are only ever inserted. Durations are derived from the stored
    start and end instants, so sums are computed over whole minutes per
    record in Python rather than with SQLite date arithmetic.
    """

    def __init__(
        self,
        db_path: str | None = None,
        clock: Clock | None = None,
        connection: sqlite3.Connection | None = None,
        max_retries: int = 3,
    ):
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

    async def append(
        self,
        user_id: str,
        started_at: datetime,
        duration_minutes: int,
        tag: str = SCREEN_TIME_TAG,
        note: str | None = None,
    ) -> UsageRecord:
        started_at = ensure_utc(started_at)
        record = UsageRecord(
            id=generate_uuid(),
            user_id=user_id,
            started_at=started_at,
            ended_at=started_at + timedelta(minutes=duration_minutes),
            tag=tag,
            note=note,
        )

        def work(conn: sqlite3.Connection) -> None:
            conn.execute(
                """INSERT INTO usage_records (id, user_id, started_at, ended_at, tag, note)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    record.id,
                    record.user_id,
                    format_datetime(record.started_at),
                    format_datetime(record.ended_at),
                    record.tag,
                    record.note,
                ),
            )

        run_in_transaction(self.connection, work, self.max_retries)
        return record

    @degrade_on_store_error(lambda: None)
    async def get_by_id(self, record_id: str) -> UsageRecord | None:
        row = self.connection.execute(
            "SELECT * FROM usage_records WHERE id = ?", (record_id,)
        ).fetchone()
        return UsageRecord(**row_to_dict(row)) if row else None

    def _select(self, user_id: str, start: datetime, end: datetime, tag: str) -> list[UsageRecord]:
        cursor = self.connection.execute(
            """SELECT * FROM usage_records
               WHERE user_id = ? AND tag = ? AND started_at >= ? AND started_at < ?
               ORDER BY started_at""",
            (user_id, tag, format_datetime(start), format_datetime(end)),
        )
        return [UsageRecord(**row_to_dict(row)) for row in cursor.fetchall()]

    @degrade_on_store_error(list)
    async def list_for_user(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        tag: str = SCREEN_TIME_TAG,
    ) -> list[UsageRecord]:
        return self._select(user_id, start, end, tag)

    @degrade_on_store_error(lambda: 0)
    async def sum_minutes(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        tag: str = SCREEN_TIME_TAG,
    ) -> int:
        return sum(record.duration_minutes for record in self._select(user_id, start, end, tag))
