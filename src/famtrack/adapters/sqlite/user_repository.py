"""SQLite implementation of UserRepository."""

from __future__ import annotations

import sqlite3

from famtrack.adapters.sqlite.connection import get_connection, run_in_transaction
from famtrack.adapters.sqlite.utils import (
    degrade_on_store_error,
    format_datetime,
    generate_uuid,
    row_to_dict,
)
from famtrack.models import User, UserCreate
from famtrack.models.exceptions import ValidationFailure
from famtrack.repositories import UserRepository
from famtrack.utils.clock import Clock, SystemClock


class SqliteUserRepository(UserRepository):
    """SQLite implementation of user repository."""

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

    @degrade_on_store_error(lambda: None)
    async def get(self, user_id: str) -> User | None:
        row = self.connection.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return User(**row_to_dict(row)) if row else None

    async def create(self, data: UserCreate) -> User:
        now = self.clock.now()
        user = User(id=generate_uuid(), created_at=now, updated_at=now, **data.model_dump())

        def work(conn: sqlite3.Connection) -> None:
            try:
                conn.execute(
                    """INSERT INTO users (id, username, email, age_group, is_active,
                                          created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (
                        user.id,
                        user.username,
                        user.email,
                        user.age_group.value,
                        int(user.is_active),
                        format_datetime(now),
                        format_datetime(now),
                    ),
                )
            except sqlite3.IntegrityError as e:
                if "users.username" in str(e):
                    raise ValidationFailure(f"Username already taken: {user.username}") from e
                raise

        run_in_transaction(self.connection, work, self.max_retries)
        return user

    async def set_active(self, user_id: str, is_active: bool) -> bool:
        now = format_datetime(self.clock.now())

        def work(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute(
                "UPDATE users SET is_active = ?, updated_at = ? WHERE id = ?",
                (int(is_active), now, user_id),
            )
            return cursor.rowcount > 0

        return run_in_transaction(self.connection, work, self.max_retries)
