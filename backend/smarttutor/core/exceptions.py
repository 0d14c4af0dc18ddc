# backend/smarttutor/core/exceptions.py
"""
Domain-specific exceptions for the SmartTutor booking core.

Every error carries a stable ``code`` and a human-readable message, and
knows how to present itself at the API layer via ``to_http_exception``.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when request input is malformed or incomplete."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "VALIDATION_ERROR"


class InvalidSlotException(ValidationException):
    """Raised when a date or start time does not form a valid slot."""

    default_code = "INVALID_SLOT"


class InvalidDurationException(ValidationException):
    """Raised when a duration is unusable or pushes a session past midnight."""

    default_code = "INVALID_DURATION"


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class InvalidTransitionException(ConflictException):
    """Raised when a status change is not allowed from the current status."""

    default_code = "INVALID_TRANSITION"

    def __init__(self, current_status: str, requested_status: str):
        super().__init__(
            message=f"Cannot change booking status from '{current_status}' to '{requested_status}'",
            details={"current_status": current_status, "requested_status": requested_status},
        )


class InvalidStateException(ConflictException):
    """Raised when an operation is not permitted in the booking's current state."""

    default_code = "INVALID_STATE"


class UnauthorizedException(DomainException):
    """Raised when the caller is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHORIZED"


class ForbiddenException(DomainException):
    """Raised when the actor lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


class PersistenceException(ServiceException):
    """Raised when the reservation store is unavailable or times out. Retryable."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "PERSISTENCE_ERROR"

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = {"Retry-After": "2"}
        return exc


# Specific business exceptions


class BookingConflictException(ConflictException):
    """Raised when the requested slot already holds an active booking."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "slot already booked",
            code="SLOT_ALREADY_BOOKED",
            details=details or {},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    statement timeouts.
    """


def is_db_timeout(exc: BaseException) -> bool:
    """Check if an exception indicates a lock wait, statement or pool timeout."""
    error_str = str(exc).lower()
    return (
        "queuepool" in error_str
        or "statement timeout" in error_str
        or "database is locked" in error_str
        or ("timeout" in error_str and ("connection" in error_str or "pool" in error_str))
    )
