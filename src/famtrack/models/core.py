"""Parental control domain models."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import ActionType, AgeGroup, DayOfWeek, PermissionRequestStatus

SCREEN_TIME_TAG = "screen-time"

# Any fixed day works for shifting a time of day to UTC
_ANCHOR_DAY = date(2000, 1, 3)


class User(BaseModel):
    """User account as seen by the parental control layer.

    Attributes:
        id: Unique identifier for the user
        username: Login name, also used for ordering children
        email: Optional contact address
        age_group: Age bracket driving family management rules
        is_active: Inactive users cannot be placed under controls
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: str
    username: str
    email: str | None = None
    age_group: AgeGroup = AgeGroup.ADULT
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class UserCreate(BaseModel):
    """Model for creating a new user."""

    username: str
    email: str | None = None
    age_group: AgeGroup = AgeGroup.ADULT
    is_active: bool = True


class FamilyRole(BaseModel):
    """Named role inside a family with its permission names."""

    id: str
    name: str
    permissions: set[str] = Field(default_factory=set)


class Family(BaseModel):
    """Family grouping.

    Attributes:
        id: Unique identifier for the family
        name: Display name
        created_by_id: User who created (and owns) the family
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: str
    name: str
    created_by_id: str
    created_at: datetime
    updated_at: datetime


class FamilyMember(BaseModel):
    """Membership of a user in a family under a role."""

    id: str
    family_id: str
    user_id: str
    role: FamilyRole
    joined_at: datetime
    is_pending: bool = False


class TimeWindowCreate(BaseModel):
    """Recurring weekly window during which a child may use the app.

    Windows lie within a single calendar day, so ``start_time`` may not be
    later than ``end_time``. A window covering late evening and early morning
    has to be expressed as two windows.

    Attributes:
        day_of_week: Day the window applies to (Monday=0)
        start_time: First allowed time of day (inclusive)
        end_time: Last allowed time of day (inclusive)
        is_active: Inactive windows are ignored
    """

    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    is_active: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def _naive_utc(cls, value: time) -> time:
        """Store times as naive UTC; an offset is applied, not kept."""
        if value.tzinfo is None:
            return value
        shifted = datetime.combine(_ANCHOR_DAY, value).astimezone(UTC)
        if shifted.date() != _ANCHOR_DAY:
            raise ValueError(f"Time {value} falls on a different day in UTC; give UTC times")
        return shifted.time()

    @model_validator(mode="after")
    def _check_same_day(self) -> TimeWindowCreate:
        if self.start_time > self.end_time:
            raise ValueError(
                f"Time window {self.start_time}-{self.end_time} spans midnight; "
                "split it into two windows"
            )
        return self

    def contains(self, moment: datetime) -> bool:
        """Whether *moment* falls inside this window (both ends inclusive)."""
        if not self.is_active or moment.weekday() != self.day_of_week:
            return False
        return self.start_time <= moment.time() <= self.end_time


class TimeWindow(TimeWindowCreate):
    """Stored time window."""

    id: str


class ParentalControl(BaseModel):
    """Per-child parental control settings.

    Attributes:
        id: Unique identifier for the control record
        parent_user_id: Direct parent owning the record
        child_user_id: Controlled child (at most one record per child)
        screen_time_enabled: Whether screen-time limits are enforced
        daily_time_limit: Daily screen-time allowance
        allowed_hours: Weekly windows during which usage is allowed
        task_approval_required: Task creation/modification needs approval
        point_spending_approval_required: Spending points needs approval
        can_invite_others: Child may invite family members without approval
        chat_monitoring_enabled: Chatting with others needs approval
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: str
    parent_user_id: str
    child_user_id: str
    screen_time_enabled: bool = True
    daily_time_limit: timedelta = timedelta(hours=2)
    allowed_hours: list[TimeWindow] = Field(default_factory=list)
    task_approval_required: bool = False
    point_spending_approval_required: bool = True
    can_invite_others: bool = False
    chat_monitoring_enabled: bool = True
    created_at: datetime
    updated_at: datetime

    @property
    def daily_time_limit_minutes(self) -> int:
        return int(self.daily_time_limit.total_seconds() // 60)


class ParentalControlCreate(BaseModel):
    """Model for creating parental controls for a child.

    The owning parent is supplied separately by the caller.
    """

    child_user_id: str
    screen_time_enabled: bool = True
    daily_time_limit: timedelta = timedelta(hours=2)
    allowed_hours: list[TimeWindowCreate] = Field(default_factory=list)
    task_approval_required: bool = False
    point_spending_approval_required: bool = True
    can_invite_others: bool = False
    chat_monitoring_enabled: bool = True

    @field_validator("daily_time_limit")
    @classmethod
    def _non_negative_limit(cls, value: timedelta) -> timedelta:
        if value < timedelta(0):
            raise ValueError("daily_time_limit cannot be negative")
        return value


class ParentalControlUpdate(BaseModel):
    """Model for updating parental controls.

    All fields are optional - only provided fields will be updated. When
    ``allowed_hours`` is given it replaces the whole window set.
    """

    screen_time_enabled: bool | None = None
    daily_time_limit: timedelta | None = None
    allowed_hours: list[TimeWindowCreate] | None = None
    task_approval_required: bool | None = None
    point_spending_approval_required: bool | None = None
    can_invite_others: bool | None = None
    chat_monitoring_enabled: bool | None = None

    @field_validator("daily_time_limit")
    @classmethod
    def _non_negative_limit(cls, value: timedelta | None) -> timedelta | None:
        if value is not None and value < timedelta(0):
            raise ValueError("daily_time_limit cannot be negative")
        return value


class PermissionRequest(BaseModel):
    """A child's request for an action that needs parent approval.

    Attributes:
        id: Unique identifier for the request
        child_user_id: Requesting child
        parent_user_id: Parent expected to review the request
        action_type: Requested action
        description: Optional free-text explanation from the child
        status: Current lifecycle state
        requested_at: When the request was created
        responded_at: When it left the Pending state
        expires_at: Deadline after which the sweep expires it
        response_message: Parent's (or the sweep's) message
    """

    id: str
    child_user_id: str
    parent_user_id: str
    action_type: ActionType
    description: str | None = None
    status: PermissionRequestStatus = PermissionRequestStatus.PENDING
    requested_at: datetime
    responded_at: datetime | None = None
    expires_at: datetime | None = None
    response_message: str | None = None


class PermissionRequestCreate(BaseModel):
    """Model for creating a permission request."""

    child_user_id: str
    parent_user_id: str
    action_type: ActionType
    description: str | None = None
    expires_at: datetime | None = None


class UsageRecord(BaseModel):
    """Immutable usage ledger entry."""

    id: str
    user_id: str
    started_at: datetime
    ended_at: datetime
    tag: str = SCREEN_TIME_TAG
    note: str | None = None

    @property
    def duration_minutes(self) -> int:
        return int((self.ended_at - self.started_at).total_seconds() // 60)


class ParentalControlSummary(BaseModel):
    """Dashboard view of one controlled child."""

    child_user_id: str
    settings: ParentalControl
    pending_requests_count: int = 0
    today_screen_time_minutes: int = 0
    remaining_screen_time_minutes: int = 0
    is_within_allowed_hours: bool = True
    recent_requests: list[PermissionRequest] = Field(default_factory=list)
