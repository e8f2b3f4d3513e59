"""Database schema definitions for the famtrack SQLite store.

Timestamps are TEXT in the fixed-width ISO format produced by
``utils.format_datetime`` so range filters can compare them directly.
"""

from __future__ import annotations

CREATE_USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    username TEXT NOT NULL UNIQUE,
    email TEXT,
    age_group TEXT NOT NULL DEFAULT 'Adult',
    is_active BOOLEAN NOT NULL DEFAULT 1,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
)
"""

CREATE_FAMILIES_TABLE = """
CREATE TABLE IF NOT EXISTS families (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_by_id TEXT NOT NULL,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL,
    FOREIGN KEY (created_by_id) REFERENCES users(id)
)
"""

CREATE_FAMILY_ROLES_TABLE = """
CREATE TABLE IF NOT EXISTS family_roles (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE
)
"""

CREATE_FAMILY_ROLE_PERMISSIONS_TABLE = """
CREATE TABLE IF NOT EXISTS family_role_permissions (
    role_id TEXT NOT NULL,
    permission TEXT NOT NULL,
    PRIMARY KEY (role_id, permission),
    FOREIGN KEY (role_id) REFERENCES family_roles(id) ON DELETE CASCADE
)
"""

CREATE_FAMILY_MEMBERS_TABLE = """
CREATE TABLE IF NOT EXISTS family_members (
    id TEXT PRIMARY KEY,
    family_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    role_id TEXT NOT NULL,
    joined_at DATETIME NOT NULL,
    is_pending BOOLEAN NOT NULL DEFAULT 0,
    FOREIGN KEY (family_id) REFERENCES families(id) ON DELETE CASCADE,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
    FOREIGN KEY (role_id) REFERENCES family_roles(id),
    UNIQUE(family_id, user_id)
)
"""

# One control record per child: the UNIQUE constraint is the guard, not a
# prior existence check.
CREATE_PARENTAL_CONTROLS_TABLE = """
CREATE TABLE IF NOT EXISTS parental_controls (
    id TEXT PRIMARY KEY,
    parent_user_id TEXT NOT NULL,
    child_user_id TEXT NOT NULL UNIQUE,
    screen_time_enabled BOOLEAN NOT NULL DEFAULT 1,
    daily_time_limit_minutes INTEGER NOT NULL DEFAULT 120,
    task_approval_required BOOLEAN NOT NULL DEFAULT 0,
    point_spending_approval_required BOOLEAN NOT NULL DEFAULT 1,
    can_invite_others BOOLEAN NOT NULL DEFAULT 0,
    chat_monitoring_enabled BOOLEAN NOT NULL DEFAULT 1,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL,
    FOREIGN KEY (parent_user_id) REFERENCES users(id),
    FOREIGN KEY (child_user_id) REFERENCES users(id) ON DELETE CASCADE
)
"""

CREATE_TIME_WINDOWS_TABLE = """
CREATE TABLE IF NOT EXISTS time_windows (
    id TEXT PRIMARY KEY,
    parental_control_id TEXT NOT NULL,
    day_of_week INTEGER NOT NULL CHECK (day_of_week BETWEEN 0 AND 6),
    start_time TEXT NOT NULL,
    end_time TEXT NOT NULL,
    is_active BOOLEAN NOT NULL DEFAULT 1,
    FOREIGN KEY (parental_control_id) REFERENCES parental_controls(id) ON DELETE CASCADE
)
"""

CREATE_PERMISSION_REQUESTS_TABLE = """
CREATE TABLE IF NOT EXISTS permission_requests (
    id TEXT PRIMARY KEY,
    child_user_id TEXT NOT NULL,
    parent_user_id TEXT NOT NULL,
    action_type TEXT NOT NULL,
    description TEXT,
    status TEXT NOT NULL DEFAULT 'Pending',
    requested_at DATETIME NOT NULL,
    responded_at DATETIME,
    expires_at DATETIME,
    response_message TEXT,
    FOREIGN KEY (child_user_id) REFERENCES users(id) ON DELETE CASCADE,
    FOREIGN KEY (parent_user_id) REFERENCES users(id)
)
"""

# Append-only usage ledger
CREATE_USAGE_RECORDS_TABLE = """
CREATE TABLE IF NOT EXISTS usage_records (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    started_at DATETIME NOT NULL,
    ended_at DATETIME NOT NULL,
    tag TEXT NOT NULL,
    note TEXT,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
)
"""

ALL_TABLES = [
    CREATE_USERS_TABLE,
    CREATE_FAMILIES_TABLE,
    CREATE_FAMILY_ROLES_TABLE,
    CREATE_FAMILY_ROLE_PERMISSIONS_TABLE,
    CREATE_FAMILY_MEMBERS_TABLE,
    CREATE_PARENTAL_CONTROLS_TABLE,
    CREATE_TIME_WINDOWS_TABLE,
    CREATE_PERMISSION_REQUESTS_TABLE,
    CREATE_USAGE_RECORDS_TABLE,
]

ALL_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_family_members_user ON family_members(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_parental_controls_parent ON parental_controls(parent_user_id)",
    "CREATE INDEX IF NOT EXISTS idx_time_windows_control ON time_windows(parental_control_id)",
    "CREATE INDEX IF NOT EXISTS idx_permission_requests_child ON permission_requests(child_user_id, requested_at)",
    "CREATE INDEX IF NOT EXISTS idx_permission_requests_parent ON permission_requests(parent_user_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_permission_requests_status ON permission_requests(status, expires_at)",
    "CREATE INDEX IF NOT EXISTS idx_usage_records_user_day ON usage_records(user_id, tag, started_at)",
]


def create_all(connection) -> None:
    """Create every table and index on *connection* (used by migrations and tests)."""
    for table_sql in ALL_TABLES:
        connection.execute(table_sql)
    for index_sql in ALL_INDEXES:
        connection.execute(index_sql)
