"""SQLite implementation of PermissionRequestRepository."""

from __future__ import annotations

import sqlite3

from famtrack.adapters.sqlite.connection import get_connection, run_in_transaction
from famtrack.adapters.sqlite.utils import (
    degrade_on_store_error,
    format_datetime,
    generate_uuid,
    row_to_dict,
)
from famtrack.models import (
    PermissionRequest,
    PermissionRequestCreate,
    PermissionRequestStatus,
)
from famtrack.models.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    ValidationFailure,
)
from famtrack.repositories import PermissionRequestRepository
from famtrack.utils.clock import Clock, SystemClock
from famtrack.utils.logger import get_logger

logger = get_logger(__name__)

EXPIRED_MESSAGE = "Request expired without response"

_PENDING = PermissionRequestStatus.PENDING.value


class SqlitePermissionRequestRepository(PermissionRequestRepository):
    """SQLite implementation of permission request repository."""

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

    @staticmethod
    def _row_to_request(row: sqlite3.Row) -> PermissionRequest:
        return PermissionRequest(**row_to_dict(row))

    def _fetch_all(self, sql: str, params: tuple | list) -> list[PermissionRequest]:
        cursor = self.connection.execute(sql, params)
        return [self._row_to_request(row) for row in cursor.fetchall()]

    async def create(self, data: PermissionRequestCreate) -> PermissionRequest:
        request = PermissionRequest(
            id=generate_uuid(),
            child_user_id=data.child_user_id,
            parent_user_id=data.parent_user_id,
            action_type=data.action_type,
            description=data.description,
            status=PermissionRequestStatus.PENDING,
            requested_at=self.clock.now(),
            expires_at=data.expires_at,
        )

        def work(conn: sqlite3.Connection) -> None:
            conn.execute(
                """INSERT INTO permission_requests
                       (id, child_user_id, parent_user_id, action_type, description,
                        status, requested_at, expires_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    request.id,
                    request.child_user_id,
                    request.parent_user_id,
                    request.action_type.value,
                    request.description,
                    request.status.value,
                    format_datetime(request.requested_at),
                    format_datetime(request.expires_at) if request.expires_at else None,
                ),
            )

        run_in_transaction(self.connection, work, self.max_retries)
        return await self.get_by_id(request.id) or request

    @degrade_on_store_error(lambda: None)
    async def get_by_id(self, request_id: str) -> PermissionRequest | None:
        row = self.connection.execute(
            "SELECT * FROM permission_requests WHERE id = ?", (request_id,)
        ).fetchone()
        return self._row_to_request(row) if row else None

    @degrade_on_store_error(list)
    async def list_by_child(self, child_user_id: str) -> list[PermissionRequest]:
        return self._fetch_all(
            """SELECT * FROM permission_requests WHERE child_user_id = ?
               ORDER BY requested_at DESC""",
            (child_user_id,),
        )

    @degrade_on_store_error(list)
    async def list_pending_for_parent(self, parent_user_id: str) -> list[PermissionRequest]:
        return self._fetch_all(
            """SELECT * FROM permission_requests
               WHERE parent_user_id = ? AND status = ?
                 AND (expires_at IS NULL OR expires_at > ?)
               ORDER BY requested_at ASC""",
            (parent_user_id, _PENDING, format_datetime(self.clock.now())),
        )

    @degrade_on_store_error(lambda: 0)
    async def count_pending_for_parent(self, parent_user_id: str) -> int:
        row = self.connection.execute(
            """SELECT COUNT(*) FROM permission_requests
               WHERE parent_user_id = ? AND status = ?
                 AND (expires_at IS NULL OR expires_at > ?)""",
            (parent_user_id, _PENDING, format_datetime(self.clock.now())),
        ).fetchone()
        return row[0]

    @degrade_on_store_error(list)
    async def list_by_status(
        self,
        status: PermissionRequestStatus,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[PermissionRequest]:
        # LIMIT -1 means no limit in SQLite
        return self._fetch_all(
            """SELECT * FROM permission_requests WHERE status = ?
               ORDER BY requested_at DESC LIMIT ? OFFSET ?""",
            (status.value, -1 if limit is None else limit, offset),
        )

    @degrade_on_store_error(list)
    async def list_recent(self, child_user_id: str, count: int = 5) -> list[PermissionRequest]:
        return self._fetch_all(
            """SELECT * FROM permission_requests WHERE child_user_id = ?
               ORDER BY requested_at DESC LIMIT ?""",
            (child_user_id, count),
        )

    async def respond(
        self,
        request_id: str,
        status: PermissionRequestStatus,
        message: str | None = None,
    ) -> PermissionRequest:
        """Answer a Pending request with one conditional update."""
        if status == PermissionRequestStatus.PENDING:
            raise ValidationFailure("A response must move the request out of Pending")

        now = format_datetime(self.clock.now())

        def work(conn: sqlite3.Connection) -> sqlite3.Row:
            cursor = conn.execute(
                """UPDATE permission_requests
                   SET status = ?, response_message = ?,
                       responded_at = COALESCE(responded_at, ?)
                   WHERE id = ? AND status = ?""",
                (status.value, message, now, request_id, _PENDING),
            )
            row = conn.execute(
                "SELECT * FROM permission_requests WHERE id = ?", (request_id,)
            ).fetchone()
            if row is None:
                raise NotFoundError(f"Permission request not found: {request_id}")
            if cursor.rowcount == 0:
                raise InvalidTransitionError(
                    f"Permission request {request_id} is already {row['status']}"
                )
            return row

        row = run_in_transaction(self.connection, work, self.max_retries)
        return self._row_to_request(row)

    async def mark_expired(self) -> int:
        now = format_datetime(self.clock.now())

        def work(conn: sqlite3.Connection) -> int:
            cursor = conn.execute(
                """UPDATE permission_requests
                   SET status = ?, responded_at = ?, response_message = ?
                   WHERE status = ? AND expires_at IS NOT NULL AND expires_at < ?""",
                (
                    PermissionRequestStatus.EXPIRED.value,
                    now,
                    EXPIRED_MESSAGE,
                    _PENDING,
                    now,
                ),
            )
            return cursor.rowcount

        return run_in_transaction(self.connection, work, self.max_retries)

    async def delete(self, request_id: str) -> bool:
        def work(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute("DELETE FROM permission_requests WHERE id = ?", (request_id,))
            return cursor.rowcount > 0

        return run_in_transaction(self.connection, work, self.max_retries)
