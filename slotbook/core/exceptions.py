"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: list[dict[str, Any]] | None = None,
    ):
        """Initialize exception with message, status code and optional field details."""
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found", resource: str | None = None):
        """Initialize with 404 status code."""
        self.resource = resource
        super().__init__(message, status_code=404)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class SlotUnavailableException(ConflictException):
    """The requested time window cannot be booked; the client should refresh slots."""

    def __init__(self, message: str = "The selected time slot is not available"):
        """Initialize with 409 status code."""
        super().__init__(message)


class InvalidStatusTransitionException(ConflictException):
    """Appointment status change not allowed by the status machine."""

    def __init__(self, current: str, requested: str):
        """Initialize with 409 status code."""
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change appointment status from '{current}' to '{requested}'")


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(
        self,
        message: str = "Validation error",
        details: list[dict[str, Any]] | None = None,
    ):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422, details=details)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationException":
        """Build a validation error pointing at a single input field."""
        return cls(message, details=[{"loc": [field], "msg": message}])


class TransientStorageException(AppException):
    """Storage timeout, lock contention or lost connection; safe to retry the whole unit."""

    def __init__(self, message: str = "Storage temporarily unavailable"):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503)


class AppointmentNumberCollisionException(TransientStorageException):
    """Another transaction committed the same appointment number first."""

    def __init__(self, number: str):
        """Initialize with the colliding number."""
        self.number = number
        super().__init__(f"Appointment number {number} already taken")


class MeetingProvisioningError(AppException):
    """Meeting link could not be created. Never surfaced as a booking failure."""

    def __init__(self, message: str = "Meeting provisioning failed"):
        """Initialize with 502 status code."""
        super().__init__(message, status_code=502)
