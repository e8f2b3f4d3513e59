"""Repository abstraction layer for famtrack.

This module defines the abstract base classes (interfaces) for all repository
types, following the hexagonal architecture (Ports & Adapters) pattern.

Getters return ``None`` (or ``False``) for missing records; raising
``NotFoundError`` is left to the services that need the record.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from famtrack.models import (
    SCREEN_TIME_TAG,
    Family,
    FamilyMember,
    FamilyRole,
    ParentalControl,
    ParentalControlCreate,
    ParentalControlUpdate,
    PermissionRequest,
    PermissionRequestCreate,
    PermissionRequestStatus,
    UsageRecord,
    User,
    UserCreate,
)


class ParentalControlRepository(ABC):
    """Abstract base class for parental control persistence.

    At most one control exists per child; implementations enforce this in
    the store and raise ``ControlAlreadyExistsError`` on a duplicate insert.
    """

    @abstractmethod
    async def get_by_id(self, control_id: str) -> ParentalControl | None:
        raise NotImplementedError(
            "ParentalControlRepository.get_by_id() must be implemented by adapter"
        )

    @abstractmethod
    async def get_by_child(self, child_user_id: str) -> ParentalControl | None:
        """Get the control record for a child, or None if the child is unrestricted."""
        raise NotImplementedError(
            "ParentalControlRepository.get_by_child() must be implemented by adapter"
        )

    @abstractmethod
    async def list_by_parent(self, parent_user_id: str) -> list[ParentalControl]:
        """List the controls a parent owns directly, ordered by child username."""
        raise NotImplementedError(
            "ParentalControlRepository.list_by_parent() must be implemented by adapter"
        )

    @abstractmethod
    async def create(
        self, parent_user_id: str, data: ParentalControlCreate
    ) -> ParentalControl:
        """Create a control together with its time windows.

        Args:
            parent_user_id: Direct parent owning the record
            data: Settings for the child

        Returns:
            Created ParentalControl

        Raises:
            ControlAlreadyExistsError: If the child already has a control
        """
        raise NotImplementedError(
            "ParentalControlRepository.create() must be implemented by adapter"
        )

    @abstractmethod
    async def update(
        self, control_id: str, updates: ParentalControlUpdate
    ) -> ParentalControl | None:
        """Apply the provided fields; ``allowed_hours`` replaces the window set.

        Returns:
            Updated ParentalControl, or None if the record does not exist
        """
        raise NotImplementedError(
            "ParentalControlRepository.update() must be implemented by adapter"
        )

    @abstractmethod
    async def delete(self, control_id: str) -> bool:
        raise NotImplementedError(
            "ParentalControlRepository.delete() must be implemented by adapter"
        )

    @abstractmethod
    async def exists(self, child_user_id: str) -> bool:
        raise NotImplementedError(
            "ParentalControlRepository.exists() must be implemented by adapter"
        )

    @abstractmethod
    async def is_direct_parent(self, parent_user_id: str, child_user_id: str) -> bool:
        """True if a control row names this parent for this child."""
        raise NotImplementedError(
            "ParentalControlRepository.is_direct_parent() must be implemented by adapter"
        )

    @abstractmethod
    async def get_parent_user_id(self, child_user_id: str) -> str | None:
        raise NotImplementedError(
            "ParentalControlRepository.get_parent_user_id() must be implemented by adapter"
        )


class PermissionRequestRepository(ABC):
    """Abstract base class for permission request persistence.

    Requests move from Pending to exactly one terminal state (Approved,
    Denied or Expired) and never change afterwards.
    """

    @abstractmethod
    async def create(self, data: PermissionRequestCreate) -> PermissionRequest:
        """Store a new Pending request stamped with the current time."""
        raise NotImplementedError(
            "PermissionRequestRepository.create() must be implemented by adapter"
        )

    @abstractmethod
    async def get_by_id(self, request_id: str) -> PermissionRequest | None:
        raise NotImplementedError(
            "PermissionRequestRepository.get_by_id() must be implemented by adapter"
        )

    @abstractmethod
    async def list_by_child(self, child_user_id: str) -> list[PermissionRequest]:
        """All requests of a child, newest first."""
        raise NotImplementedError(
            "PermissionRequestRepository.list_by_child() must be implemented by adapter"
        )

    @abstractmethod
    async def list_pending_for_parent(self, parent_user_id: str) -> list[PermissionRequest]:
        """Unexpired Pending requests awaiting a parent, oldest first."""
        raise NotImplementedError(
            "PermissionRequestRepository.list_pending_for_parent() must be implemented by adapter"
        )

    @abstractmethod
    async def count_pending_for_parent(self, parent_user_id: str) -> int:
        raise NotImplementedError(
            "PermissionRequestRepository.count_pending_for_parent() must be implemented by adapter"
        )

    @abstractmethod
    async def list_by_status(
        self,
        status: PermissionRequestStatus,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[PermissionRequest]:
        raise NotImplementedError(
            "PermissionRequestRepository.list_by_status() must be implemented by adapter"
        )

    @abstractmethod
    async def list_recent(self, child_user_id: str, count: int = 5) -> list[PermissionRequest]:
        raise NotImplementedError(
            "PermissionRequestRepository.list_recent() must be implemented by adapter"
        )

    @abstractmethod
    async def respond(
        self,
        request_id: str,
        status: PermissionRequestStatus,
        message: str | None = None,
    ) -> PermissionRequest:
        """Move a Pending request to a terminal status.

        Args:
            request_id: Request to answer
            status: Approved, Denied or Expired
            message: Optional response message

        Returns:
            The updated request

        Raises:
            NotFoundError: If the request does not exist
            InvalidTransitionError: If the request is no longer Pending
            ValidationFailure: If *status* is Pending
        """
        raise NotImplementedError(
            "PermissionRequestRepository.respond() must be implemented by adapter"
        )

    @abstractmethod
    async def mark_expired(self) -> int:
        """Expire every Pending request whose deadline has passed.

        Returns:
            Number of requests expired by this call
        """
        raise NotImplementedError(
            "PermissionRequestRepository.mark_expired() must be implemented by adapter"
        )

    @abstractmethod
    async def delete(self, request_id: str) -> bool:
        raise NotImplementedError(
            "PermissionRequestRepository.delete() must be implemented by adapter"
        )


class UsageLedgerRepository(ABC):
    """Append-only ledger of timed usage records."""

    @abstractmethod
    async def append(
        self,
        user_id: str,
        started_at: datetime,
        duration_minutes: int,
        tag: str = SCREEN_TIME_TAG,
        note: str | None = None,
    ) -> UsageRecord:
        """Append one record; records are never merged or edited."""
        raise NotImplementedError(
            "UsageLedgerRepository.append() must be implemented by adapter"
        )

    @abstractmethod
    async def get_by_id(self, record_id: str) -> UsageRecord | None:
        raise NotImplementedError(
            "UsageLedgerRepository.get_by_id() must be implemented by adapter"
        )

    @abstractmethod
    async def list_for_user(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        tag: str = SCREEN_TIME_TAG,
    ) -> list[UsageRecord]:
        """Records with ``start <= started_at < end``, oldest first."""
        raise NotImplementedError(
            "UsageLedgerRepository.list_for_user() must be implemented by adapter"
        )

    @abstractmethod
    async def sum_minutes(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        tag: str = SCREEN_TIME_TAG,
    ) -> int:
        """Total whole minutes of records with ``start <= started_at < end``."""
        raise NotImplementedError(
            "UsageLedgerRepository.sum_minutes() must be implemented by adapter"
        )


class FamilyRepository(ABC):
    """Abstract base class for families, memberships and roles."""

    @abstractmethod
    async def create_family(
        self, name: str, created_by_id: str, creator_role_id: str
    ) -> Family:
        """Create a family and add its creator as the first member."""
        raise NotImplementedError(
            "FamilyRepository.create_family() must be implemented by adapter"
        )

    @abstractmethod
    async def get_family(self, family_id: str) -> Family | None:
        raise NotImplementedError(
            "FamilyRepository.get_family() must be implemented by adapter"
        )

    @abstractmethod
    async def list_families_for_user(self, user_id: str) -> list[Family]:
        raise NotImplementedError(
            "FamilyRepository.list_families_for_user() must be implemented by adapter"
        )

    @abstractmethod
    async def list_family_ids_for_user(self, user_id: str) -> list[str]:
        raise NotImplementedError(
            "FamilyRepository.list_family_ids_for_user() must be implemented by adapter"
        )

    @abstractmethod
    async def delete_family(self, family_id: str) -> bool:
        """Delete the members and then the family in one transaction."""
        raise NotImplementedError(
            "FamilyRepository.delete_family() must be implemented by adapter"
        )

    @abstractmethod
    async def add_member(self, family_id: str, user_id: str, role_id: str) -> bool:
        """Add a member; returns False if the user already belongs to the family."""
        raise NotImplementedError(
            "FamilyRepository.add_member() must be implemented by adapter"
        )

    @abstractmethod
    async def remove_member(self, family_id: str, user_id: str) -> bool:
        raise NotImplementedError(
            "FamilyRepository.remove_member() must be implemented by adapter"
        )

    @abstractmethod
    async def update_member_role(self, family_id: str, user_id: str, role_id: str) -> bool:
        raise NotImplementedError(
            "FamilyRepository.update_member_role() must be implemented by adapter"
        )

    @abstractmethod
    async def list_members(self, family_id: str) -> list[FamilyMember]:
        raise NotImplementedError(
            "FamilyRepository.list_members() must be implemented by adapter"
        )

    @abstractmethod
    async def is_member(self, family_id: str, user_id: str) -> bool:
        raise NotImplementedError(
            "FamilyRepository.is_member() must be implemented by adapter"
        )

    @abstractmethod
    async def get_role(self, family_id: str, user_id: str) -> FamilyRole | None:
        """Role the user holds in the family, or None if not a member."""
        raise NotImplementedError(
            "FamilyRepository.get_role() must be implemented by adapter"
        )

    @abstractmethod
    async def role_has_permission(self, family_id: str, user_id: str, permission: str) -> bool:
        raise NotImplementedError(
            "FamilyRepository.role_has_permission() must be implemented by adapter"
        )

    @abstractmethod
    async def create_role(self, name: str, permissions: set[str]) -> FamilyRole:
        raise NotImplementedError(
            "FamilyRepository.create_role() must be implemented by adapter"
        )

    @abstractmethod
    async def get_role_by_name(self, name: str) -> FamilyRole | None:
        raise NotImplementedError(
            "FamilyRepository.get_role_by_name() must be implemented by adapter"
        )

    @abstractmethod
    async def is_family_admin(self, user_id: str, family_id: str) -> bool:
        """True for the family creator or holders of ``manage_family``."""
        raise NotImplementedError(
            "FamilyRepository.is_family_admin() must be implemented by adapter"
        )

    @abstractmethod
    async def transfer_ownership(
        self, family_id: str, current_owner_id: str, new_owner_id: str
    ) -> bool:
        """Hand the family over to another non-child member.

        Returns:
            True if ownership moved, False if any precondition failed
        """
        raise NotImplementedError(
            "FamilyRepository.transfer_ownership() must be implemented by adapter"
        )

    @abstractmethod
    async def can_manage_family_based_on_age(self, user_id: str, family_id: str) -> bool:
        raise NotImplementedError(
            "FamilyRepository.can_manage_family_based_on_age() must be implemented by adapter"
        )


class UserRepository(ABC):
    """Abstract base class for user persistence."""

    @abstractmethod
    async def get(self, user_id: str) -> User | None:
        raise NotImplementedError("UserRepository.get() must be implemented by adapter")

    @abstractmethod
    async def create(self, data: UserCreate) -> User:
        raise NotImplementedError("UserRepository.create() must be implemented by adapter")

    @abstractmethod
    async def set_active(self, user_id: str, is_active: bool) -> bool:
        raise NotImplementedError(
            "UserRepository.set_active() must be implemented by adapter"
        )
