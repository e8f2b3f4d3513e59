"""Service context: builds repositories and services from configuration.

Usage:
    context = get_service_context()
    await context.screen_time_service.remaining_minutes_today(child_id)

Tests build a context directly around an in-memory connection and a
FixedClock instead.
"""

from __future__ import annotations

import functools
import sqlite3

from famtrack.adapters.sqlite import (
    SqliteFamilyRepository,
    SqliteParentalControlRepository,
    SqlitePermissionRequestRepository,
    SqliteUsageLedgerRepository,
    SqliteUserRepository,
    get_connection,
)
from famtrack.config import Config, get_config_manager
from famtrack.services.authorization_service import AuthorizationService
from famtrack.services.ownership_service import OwnershipService
from famtrack.services.parental_control_service import ParentalControlService
from famtrack.services.screen_time_service import ScreenTimeService
from famtrack.utils.clock import Clock, SystemClock


class ServiceContext:
    """Single place where repositories and services are wired together."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        config: Config | None = None,
        clock: Clock | None = None,
    ):
        self.connection = connection
        self.config = config or Config()
        self.clock = clock or SystemClock()

        repo_args = {
            "clock": self.clock,
            "connection": connection,
            "max_retries": self.config.database.max_retries,
        }
        self.control_repository = SqliteParentalControlRepository(**repo_args)
        self.request_repository = SqlitePermissionRequestRepository(**repo_args)
        self.usage_repository = SqliteUsageLedgerRepository(**repo_args)
        self.family_repository = SqliteFamilyRepository(**repo_args)
        self.user_repository = SqliteUserRepository(**repo_args)

    @functools.cached_property
    def authorization_service(self) -> AuthorizationService:
        return AuthorizationService(
            self.control_repository,
            self.family_repository,
            guardian_roles=self.config.parental.guardian_roles,
        )

    @functools.cached_property
    def screen_time_service(self) -> ScreenTimeService:
        return ScreenTimeService(self.control_repository, self.usage_repository, self.clock)

    @functools.cached_property
    def parental_control_service(self) -> ParentalControlService:
        parental = self.config.parental
        return ParentalControlService(
            self.control_repository,
            self.request_repository,
            self.user_repository,
            self.authorization_service,
            self.screen_time_service,
            self.clock,
            request_expiry_hours=parental.request_expiry_hours,
            default_daily_limit_minutes=parental.default_daily_limit_minutes,
            recent_requests_count=parental.recent_requests_count,
        )

    @functools.cached_property
    def ownership_service(self) -> OwnershipService:
        return OwnershipService(
            self.control_repository,
            self.request_repository,
            self.family_repository,
            self.usage_repository,
        )


_service_context: ServiceContext | None = None


def get_service_context() -> ServiceContext:
    """Get or create the process-wide service context from configuration."""
    global _service_context
    if _service_context is None:
        manager = get_config_manager()
        _service_context = ServiceContext(
            get_connection(manager.database_path), config=manager.config
        )
    return _service_context


def reset_service_context() -> None:
    """Forget the cached context (after a configuration change)."""
    global _service_context
    _service_context = None
