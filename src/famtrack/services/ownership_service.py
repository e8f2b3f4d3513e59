"""Ownership verification for the resources a user may touch."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from famtrack.models import ResourceKind
from famtrack.models.exceptions import ValidationFailure
from famtrack.repositories import (
    FamilyRepository,
    ParentalControlRepository,
    PermissionRequestRepository,
    UsageLedgerRepository,
)

OwnershipCheck = Callable[[str, str], Awaitable[bool]]


class OwnershipService:
    """Decides whether a user owns a resource of a given kind.

    Each resource kind has its own checker; missing resources are never
    owned by anyone.
    """

    def __init__(
        self,
        control_repository: ParentalControlRepository,
        request_repository: PermissionRequestRepository,
        family_repository: FamilyRepository,
        usage_repository: UsageLedgerRepository,
    ):
        self.controls = control_repository
        self.requests = request_repository
        self.families = family_repository
        self.usage = usage_repository
        self._checks: dict[ResourceKind, OwnershipCheck] = {
            ResourceKind.PARENTAL_CONTROL: self.owns_parental_control,
            ResourceKind.PERMISSION_REQUEST: self.owns_permission_request,
            ResourceKind.FAMILY: self.owns_family,
            ResourceKind.USAGE_RECORD: self.owns_usage_record,
        }

    async def verify_ownership(self, kind: ResourceKind | str, resource_id: str, user_id: str) -> bool:
        try:
            check = self._checks[ResourceKind(kind)]
        except ValueError as e:
            raise ValidationFailure(f"Unknown resource kind: {kind}") from e
        return await check(resource_id, user_id)

    async def owns_parental_control(self, control_id: str, user_id: str) -> bool:
        control = await self.controls.get_by_id(control_id)
        return control is not None and user_id in (control.parent_user_id, control.child_user_id)

    async def owns_permission_request(self, request_id: str, user_id: str) -> bool:
        request = await self.requests.get_by_id(request_id)
        return request is not None and user_id in (request.child_user_id, request.parent_user_id)

    async def owns_family(self, family_id: str, user_id: str) -> bool:
        return await self.families.is_member(family_id, user_id)

    async def owns_usage_record(self, record_id: str, user_id: str) -> bool:
        record = await self.usage.get_by_id(record_id)
        return record is not None and record.user_id == user_id
