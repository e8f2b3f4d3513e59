"""Closed enumerations shared by models, repositories and services."""

from __future__ import annotations

from enum import Enum, IntEnum


class ActionType(str, Enum):
    """Child actions that may need parent approval."""

    SPEND_POINTS = "SpendPoints"
    CREATE_TASK = "CreateTask"
    MODIFY_TASK = "ModifyTask"
    DELETE_TASK = "DeleteTask"
    INVITE_FAMILY_MEMBER = "InviteFamilyMember"
    CHANGE_PROFILE = "ChangeProfile"
    CHAT_WITH_OTHERS = "ChatWithOthers"
    JOIN_FAMILY = "JoinFamily"


class PermissionRequestStatus(str, Enum):
    """Lifecycle states of a permission request."""

    PENDING = "Pending"
    APPROVED = "Approved"
    DENIED = "Denied"
    EXPIRED = "Expired"

    @property
    def is_terminal(self) -> bool:
        return self is not PermissionRequestStatus.PENDING


class ParentAction(str, Enum):
    """Actions a parent may attempt on a child's account."""

    MANAGE_CONTROLS = "ManageControls"
    VIEW_ACTIVITY = "ViewActivity"
    RESPOND_TO_REQUEST = "RespondToRequest"
    DELETE_CHILD = "DeleteChild"
    VIEW_SENSITIVE_DATA = "ViewSensitiveData"


class AgeGroup(str, Enum):
    """Age bracket of a user."""

    CHILD = "Child"  # under 13
    TEEN = "Teen"  # 13-17
    ADULT = "Adult"  # 18+


class DayOfWeek(IntEnum):
    """Day of week using Python's weekday() numbering."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


class ResourceKind(str, Enum):
    """Resource kinds understood by ownership verification."""

    PARENTAL_CONTROL = "ParentalControl"
    PERMISSION_REQUEST = "PermissionRequest"
    FAMILY = "Family"
    USAGE_RECORD = "UsageRecord"
