"""Schema migrations for the famtrack SQLite store."""

from .m001_initial_schema import initial_migration
from .m002_default_family_roles import DEFAULT_ROLES, default_roles_migration, role_id
from .runner import (
    Migration,
    MigrationRunner,
    get_current_version,
    run_migrations,
)

# Every migration, in the order they are applied
ALL_MIGRATIONS: list[Migration] = [initial_migration, default_roles_migration]

__all__ = [
    "ALL_MIGRATIONS",
    "DEFAULT_ROLES",
    "Migration",
    "MigrationRunner",
    "get_current_version",
    "role_id",
    "run_migrations",
]
