"""Shared test fixtures.

Every test gets its config, data and log directories redirected into
``tmp_path``; store-backed tests run against an in-memory SQLite database
migrated with the real schema.
"""

from __future__ import annotations

import logging
import logging.handlers
import sqlite3
from datetime import UTC, datetime

import pytest

from famtrack.adapters.sqlite.connection import prepare_connection
from famtrack.adapters.sqlite.migrations import role_id
from famtrack.adapters.sqlite.utils import format_datetime, generate_uuid
from famtrack.models import AgeGroup
from famtrack.services.context import ServiceContext
from famtrack.utils.clock import FixedClock

# Wednesday
NOW = datetime(2024, 3, 6, 10, 0, tzinfo=UTC)


def _drop_file_handlers() -> None:
    app_logger = logging.getLogger("famtrack")
    for handler in list(app_logger.handlers):
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            app_logger.removeHandler(handler)
            handler.close()


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Keep config, data and log files out of the real user directories."""
    import famtrack.config as config_mod
    import famtrack.services.context as context_mod
    import famtrack.utils.logger as logger_mod

    monkeypatch.setattr(config_mod, "user_config_dir", lambda _app: str(tmp_path / "config"))
    monkeypatch.setattr(config_mod, "user_data_dir", lambda _app: str(tmp_path / "data"))
    monkeypatch.setattr(logger_mod, "user_log_dir", lambda _app: str(tmp_path / "logs"))
    monkeypatch.setattr(config_mod, "_config_manager", None)
    monkeypatch.setattr(context_mod, "_service_context", None)
    monkeypatch.setattr(logger_mod, "_logger", None)
    _drop_file_handlers()

    yield

    _drop_file_handlers()


@pytest.fixture
def db():
    conn = prepare_connection(sqlite3.connect(":memory:", check_same_thread=False))
    yield conn
    conn.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def context(db, clock):
    return ServiceContext(db, clock=clock)


def insert_user(
    conn: sqlite3.Connection,
    username: str,
    age_group: AgeGroup = AgeGroup.ADULT,
    is_active: bool = True,
) -> str:
    user_id = generate_uuid()
    stamp = format_datetime(NOW)
    conn.execute(
        """INSERT INTO users (id, username, email, age_group, is_active, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (user_id, username, f"{username}@example.com", age_group.value, int(is_active), stamp, stamp),
    )
    conn.commit()
    return user_id


def insert_family(conn: sqlite3.Connection, name: str, owner_id: str, owner_role: str = "Admin") -> str:
    family_id = generate_uuid()
    stamp = format_datetime(NOW)
    conn.execute(
        "INSERT INTO families (id, name, created_by_id, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
        (family_id, name, owner_id, stamp, stamp),
    )
    add_to_family(conn, family_id, owner_id, owner_role)
    return family_id


def add_to_family(conn: sqlite3.Connection, family_id: str, user_id: str, role: str) -> None:
    conn.execute(
        "INSERT INTO family_members (id, family_id, user_id, role_id, joined_at) VALUES (?, ?, ?, ?, ?)",
        (generate_uuid(), family_id, user_id, role_id(role), format_datetime(NOW)),
    )
    conn.commit()


@pytest.fixture
def users(db):
    """A parent, a second adult, a child and a teen."""
    return {
        "parent": insert_user(db, "parent"),
        "other": insert_user(db, "other"),
        "child": insert_user(db, "child", AgeGroup.CHILD),
        "teen": insert_user(db, "teen", AgeGroup.TEEN),
    }


@pytest.fixture
def make_user(db):
    return lambda username, age_group=AgeGroup.ADULT, is_active=True: insert_user(
        db, username, age_group, is_active
    )


@pytest.fixture
def make_family(db):
    return lambda name, owner_id, owner_role="Admin": insert_family(db, name, owner_id, owner_role)


@pytest.fixture
def join_family(db):
    return lambda family_id, user_id, role: add_to_family(db, family_id, user_id, role)
