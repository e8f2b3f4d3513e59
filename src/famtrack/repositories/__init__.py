"""Repository interfaces for famtrack.

This package contains abstract base classes (ABCs) that define the contracts
for data persistence operations. These are the "Ports" in the Hexagonal
Architecture; the SQLite adapters live in ``famtrack.adapters.sqlite``.
"""

from .repository import (
    FamilyRepository,
    ParentalControlRepository,
    PermissionRequestRepository,
    UsageLedgerRepository,
    UserRepository,
)

__all__ = [
    "ParentalControlRepository",
    "PermissionRequestRepository",
    "UsageLedgerRepository",
    "FamilyRepository",
    "UserRepository",
]
