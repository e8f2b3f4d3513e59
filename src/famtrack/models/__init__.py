"""famtrack domain models.

This package contains the Pydantic models, enumerations and exceptions that
represent the parental control domain. These models are used throughout the
application for data validation, serialization, and type safety.
"""

from .core import (
    SCREEN_TIME_TAG,
    Family,
    FamilyMember,
    FamilyRole,
    ParentalControl,
    ParentalControlCreate,
    ParentalControlSummary,
    ParentalControlUpdate,
    PermissionRequest,
    PermissionRequestCreate,
    TimeWindow,
    TimeWindowCreate,
    UsageRecord,
    User,
    UserCreate,
)
from .enums import (
    ActionType,
    AgeGroup,
    DayOfWeek,
    ParentAction,
    PermissionRequestStatus,
    ResourceKind,
)

__all__ = [
    # Parental control models
    "ParentalControl",
    "ParentalControlCreate",
    "ParentalControlUpdate",
    "ParentalControlSummary",
    "TimeWindow",
    "TimeWindowCreate",
    # Permission request models
    "PermissionRequest",
    "PermissionRequestCreate",
    # Usage ledger
    "UsageRecord",
    "SCREEN_TIME_TAG",
    # Family and user models
    "Family",
    "FamilyMember",
    "FamilyRole",
    "User",
    "UserCreate",
    # Enums
    "ActionType",
    "AgeGroup",
    "DayOfWeek",
    "ParentAction",
    "PermissionRequestStatus",
    "ResourceKind",
]
