"""Services module for famtrack - business logic layer."""

from .authorization_service import AuthorizationService
from .ownership_service import OwnershipService
from .parental_control_service import ParentalControlService
from .screen_time_service import UNLIMITED_MINUTES, ScreenTimeService

__all__ = [
    "AuthorizationService",
    "ScreenTimeService",
    "ParentalControlService",
    "OwnershipService",
    "UNLIMITED_MINUTES",
]
