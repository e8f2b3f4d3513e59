"""SQLite adapter module - local database storage implementation."""

from famtrack.adapters.sqlite.connection import (
    DatabaseConnection,
    get_connection,
    prepare_connection,
    run_in_transaction,
)
from famtrack.adapters.sqlite.family_repository import SqliteFamilyRepository
from famtrack.adapters.sqlite.parental_control_repository import (
    SqliteParentalControlRepository,
)
from famtrack.adapters.sqlite.permission_request_repository import (
    SqlitePermissionRequestRepository,
)
from famtrack.adapters.sqlite.usage_repository import SqliteUsageLedgerRepository
from famtrack.adapters.sqlite.user_repository import SqliteUserRepository

__all__ = [
    "DatabaseConnection",
    "get_connection",
    "prepare_connection",
    "run_in_transaction",
    "SqliteFamilyRepository",
    "SqliteParentalControlRepository",
    "SqlitePermissionRequestRepository",
    "SqliteUsageLedgerRepository",
    "SqliteUserRepository",
]
