"""Parental control service - control management and the request workflow."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from famtrack.models import (
    ActionType,
    AgeGroup,
    ParentAction,
    ParentalControl,
    ParentalControlCreate,
    ParentalControlSummary,
    ParentalControlUpdate,
    PermissionRequest,
    PermissionRequestCreate,
    PermissionRequestStatus,
)
from famtrack.models.exceptions import (
    ControlAlreadyExistsError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailure,
)
from famtrack.repositories import (
    ParentalControlRepository,
    PermissionRequestRepository,
    UserRepository,
)
from famtrack.services.authorization_service import AuthorizationService
from famtrack.services.screen_time_service import ScreenTimeService
from famtrack.utils.clock import Clock, SystemClock, ensure_utc
from famtrack.utils.logger import get_logger

logger = get_logger(__name__)


class ParentalControlService:
    """Service for parental control business logic.

    Every mutating operation checks the caller's authority first, through
    the AuthorizationService, and logs the resulting state change.
    """

    def __init__(
        self,
        control_repository: ParentalControlRepository,
        request_repository: PermissionRequestRepository,
        user_repository: UserRepository,
        authorization: AuthorizationService,
        screen_time: ScreenTimeService,
        clock: Clock | None = None,
        *,
        request_expiry_hours: int = 24,
        default_daily_limit_minutes: int | None = None,
        recent_requests_count: int = 5,
    ):
        """Initialize the parental control service.

        Args:
            control_repository: Parental control storage
            request_repository: Permission request storage
            user_repository: User lookups for child validation
            authorization: Authority and approval-policy checks
            screen_time: Usage figures for summaries
            clock: Source of the current time
            request_expiry_hours: Lifetime of requests created without a deadline
            default_daily_limit_minutes: Limit applied when a new control sets none
            recent_requests_count: Requests listed per child in summaries
        """
        self.controls = control_repository
        self.requests = request_repository
        self.users = user_repository
        self.authorization = authorization
        self.screen_time = screen_time
        self.clock = clock or SystemClock()
        self.request_expiry = timedelta(hours=request_expiry_hours)
        self.default_daily_limit_minutes = default_daily_limit_minutes
        self.recent_requests_count = recent_requests_count

    # ------------------------------------------------------------------
    # Control management
    # ------------------------------------------------------------------

    async def get_control_for_child(
        self, child_user_id: str, requesting_user_id: str
    ) -> ParentalControl | None:
        """Get a child's controls; the child itself or a parent may read them.

        Raises:
            PermissionDeniedError: If the caller is neither
        """
        if requesting_user_id != child_user_id and not await self.authorization.has_parent_permission(
            requesting_user_id, child_user_id
        ):
            raise PermissionDeniedError(
                f"User {requesting_user_id} cannot view controls of {child_user_id}"
            )
        return await self.controls.get_by_child(child_user_id)

    async def list_controls_for_parent(self, parent_user_id: str) -> list[ParentalControl]:
        return await self.controls.list_by_parent(parent_user_id)

    async def create_control(
        self, parent_user_id: str, data: ParentalControlCreate
    ) -> ParentalControl:
        """Place a child under parental controls owned by *parent_user_id*.

        Raises:
            ValidationFailure: If the child is unknown, inactive or an adult
            ControlAlreadyExistsError: If the child already has controls
            PermissionDeniedError: If the parent has no authority over the child
        """
        child = await self.users.get(data.child_user_id)
        if child is None or not child.is_active:
            raise ValidationFailure(f"Child user not found or inactive: {data.child_user_id}")

        if await self.controls.exists(data.child_user_id):
            raise ControlAlreadyExistsError(data.child_user_id)

        if not await self.authorization.has_parent_permission(parent_user_id, data.child_user_id):
            raise PermissionDeniedError(
                f"User {parent_user_id} has no parent authority over {data.child_user_id}"
            )

        if child.age_group == AgeGroup.ADULT:
            raise ValidationFailure("Parental controls cannot be applied to adult users")

        if (
            self.default_daily_limit_minutes is not None
            and "daily_time_limit" not in data.model_fields_set
        ):
            data = data.model_copy(
                update={"daily_time_limit": timedelta(minutes=self.default_daily_limit_minutes)}
            )

        control = await self.controls.create(parent_user_id, data)
        logger.info(
            "parental controls created for child %s by parent %s", data.child_user_id, parent_user_id
        )
        return control

    async def update_control(
        self, parent_user_id: str, child_user_id: str, updates: ParentalControlUpdate
    ) -> ParentalControl:
        if not await self.authorization.has_parent_permission(parent_user_id, child_user_id):
            raise PermissionDeniedError(
                f"User {parent_user_id} has no parent authority over {child_user_id}"
            )
        control = await self.controls.get_by_child(child_user_id)
        if control is None:
            raise NotFoundError(f"No parental controls for child {child_user_id}")

        updated = await self.controls.update(control.id, updates)
        if updated is None:
            raise NotFoundError(f"No parental controls for child {child_user_id}")
        logger.info("parental controls updated for child %s by %s", child_user_id, parent_user_id)
        return updated

    async def remove_control(self, parent_user_id: str, child_user_id: str) -> None:
        """Remove a child's controls; only the direct parent may do this."""
        if not await self.authorization.validate_parent_action(
            parent_user_id, child_user_id, ParentAction.DELETE_CHILD
        ):
            raise PermissionDeniedError(
                f"User {parent_user_id} cannot remove controls of {child_user_id}"
            )
        control = await self.controls.get_by_child(child_user_id)
        if control is None:
            raise NotFoundError(f"No parental controls for child {child_user_id}")

        await self.controls.delete(control.id)
        logger.info("parental controls removed for child %s by %s", child_user_id, parent_user_id)

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    async def _summarize(
        self, control: ParentalControl, pending: list[PermissionRequest]
    ) -> ParentalControlSummary:
        child_id = control.child_user_id
        return ParentalControlSummary(
            child_user_id=child_id,
            settings=control,
            pending_requests_count=sum(1 for r in pending if r.child_user_id == child_id),
            today_screen_time_minutes=await self.screen_time.usage_for_date(
                child_id, self.clock.today()
            ),
            remaining_screen_time_minutes=await self.screen_time.remaining_minutes_today(child_id),
            is_within_allowed_hours=await self.screen_time.is_within_allowed_hours(
                child_id, self.clock.now()
            ),
            recent_requests=await self.requests.list_recent(
                child_id, self.recent_requests_count
            ),
        )

    async def get_summary(
        self, parent_user_id: str, child_user_id: str
    ) -> ParentalControlSummary:
        if not await self.authorization.validate_parent_action(
            parent_user_id, child_user_id, ParentAction.VIEW_ACTIVITY
        ):
            raise PermissionDeniedError(
                f"User {parent_user_id} cannot view activity of {child_user_id}"
            )
        control = await self.controls.get_by_child(child_user_id)
        if control is None:
            raise NotFoundError(f"No parental controls for child {child_user_id}")
        pending = await self.requests.list_pending_for_parent(control.parent_user_id)
        return await self._summarize(control, pending)

    async def get_summaries(self, parent_user_id: str) -> list[ParentalControlSummary]:
        """Dashboard summaries for every child the parent controls directly."""
        controls = await self.controls.list_by_parent(parent_user_id)
        pending = await self.requests.list_pending_for_parent(parent_user_id)
        return [await self._summarize(control, pending) for control in controls]

    # ------------------------------------------------------------------
    # Permission requests
    # ------------------------------------------------------------------

    async def create_permission_request(
        self,
        child_user_id: str,
        action_type: ActionType,
        *,
        description: str | None = None,
        expires_at: datetime | None = None,
    ) -> PermissionRequest:
        """Ask the child's parent for approval of *action_type*.

        Raises:
            ValidationFailure: If the child has no controls or the action
                needs no approval
        """
        parent_user_id = await self.controls.get_parent_user_id(child_user_id)
        if parent_user_id is None:
            raise ValidationFailure(f"Child {child_user_id} has no parental controls")

        if not await self.authorization.requires_approval(child_user_id, action_type):
            name = action_type.value if isinstance(action_type, ActionType) else action_type
            raise ValidationFailure(f"{name} does not require approval")

        if expires_at is None:
            expires_at = self.clock.now() + self.request_expiry

        request = await self.requests.create(
            PermissionRequestCreate(
                child_user_id=child_user_id,
                parent_user_id=parent_user_id,
                action_type=action_type,
                description=description,
                expires_at=ensure_utc(expires_at),
            )
        )
        logger.info(
            "permission request %s (%s) created by child %s",
            request.id, request.action_type.value, child_user_id,
        )
        return request

    async def get_pending_requests(self, parent_user_id: str) -> list[PermissionRequest]:
        return await self.requests.list_pending_for_parent(parent_user_id)

    async def get_requests_for_child(
        self, child_user_id: str, requesting_user_id: str
    ) -> list[PermissionRequest]:
        if requesting_user_id != child_user_id and not await self.authorization.has_parent_permission(
            requesting_user_id, child_user_id
        ):
            raise PermissionDeniedError(
                f"User {requesting_user_id} cannot view requests of {child_user_id}"
            )
        return await self.requests.list_by_child(child_user_id)

    async def respond_to_request(
        self,
        request_id: str,
        parent_user_id: str,
        approved: bool,
        message: str | None = None,
    ) -> PermissionRequest:
        """Approve or deny a Pending request.

        Raises:
            NotFoundError: If the request does not exist
            PermissionDeniedError: If the caller is not the request's parent
            InvalidTransitionError: If the request was answered or has expired
        """
        request = await self.requests.get_by_id(request_id)
        if request is None:
            raise NotFoundError(f"Permission request not found: {request_id}")
        if request.parent_user_id != parent_user_id:
            raise PermissionDeniedError(
                f"User {parent_user_id} cannot respond to request {request_id}"
            )
        if request.status.is_terminal:
            raise InvalidTransitionError(
                f"Permission request {request_id} is already {request.status.value}"
            )
        if request.expires_at is not None and ensure_utc(request.expires_at) <= self.clock.now():
            raise InvalidTransitionError(f"Permission request {request_id} has expired")

        status = PermissionRequestStatus.APPROVED if approved else PermissionRequestStatus.DENIED
        answered = await self.requests.respond(request_id, status, message)
        logger.info(
            "permission request %s %s by %s", request_id, status.value.lower(), parent_user_id
        )
        return answered

    async def approve(
        self, request_id: str, parent_user_id: str, message: str | None = None
    ) -> PermissionRequest:
        return await self.respond_to_request(request_id, parent_user_id, True, message)

    async def deny(
        self, request_id: str, parent_user_id: str, message: str | None = None
    ) -> PermissionRequest:
        return await self.respond_to_request(request_id, parent_user_id, False, message)

    async def bulk_respond(
        self,
        request_ids: Iterable[str],
        parent_user_id: str,
        approved: bool,
        message: str | None = None,
    ) -> list[PermissionRequest]:
        """Respond to several requests, skipping those that cannot be answered.

        Returns:
            The requests that were answered
        """
        answered = []
        for request_id in request_ids:
            try:
                answered.append(
                    await self.respond_to_request(request_id, parent_user_id, approved, message)
                )
            except (NotFoundError, PermissionDeniedError, ValidationFailure) as e:
                logger.warning("skipping permission request %s: %s", request_id, e)
        return answered

    async def delete_request(self, request_id: str, requesting_user_id: str) -> bool:
        """Delete a request; only its child or its parent may do this."""
        request = await self.requests.get_by_id(request_id)
        if request is None:
            return False
        if requesting_user_id not in (request.child_user_id, request.parent_user_id):
            raise PermissionDeniedError(
                f"User {requesting_user_id} cannot delete request {request_id}"
            )
        return await self.requests.delete(request_id)

    async def process_expired_requests(self) -> int:
        """Expire overdue Pending requests; returns how many were expired."""
        count = await self.requests.mark_expired()
        if count:
            logger.info("expired %d permission requests", count)
        return count
