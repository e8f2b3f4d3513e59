"""Custom exceptions for famtrack."""


class FamtrackError(Exception):
    """Base exception for all famtrack errors."""


class NotFoundError(FamtrackError):
    """Raised when an operation needs a record that does not exist."""


class ValidationFailure(FamtrackError):
    """Raised when input or a business rule is violated."""


class PermissionDeniedError(FamtrackError):
    """Raised when the caller has no authority over the target resource."""


class ControlAlreadyExistsError(ValidationFailure):
    """Raised when a child already has a parental control record."""

    def __init__(self, child_user_id: str):
        super().__init__(f"Parental controls already exist for child {child_user_id}")
        self.child_user_id = child_user_id


class InvalidTransitionError(ValidationFailure):
    """Raised when a permission request cannot move to the requested state."""


class StoreError(FamtrackError):
    """Base class for failures raised by the underlying store."""


class TransientStoreError(StoreError):
    """Raised when the store stayed locked or busy after all retries."""


class FatalStoreError(StoreError):
    """Raised for schema, constraint or other non-retryable store failures."""
