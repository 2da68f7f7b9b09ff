# fitsched/core/exceptions.py
"""
Domain-specific exceptions for the scheduling platform.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.

Taxonomy:
    NotFoundException            - referenced entity id does not exist
    ValidationException          - malformed argument (bad time, duplicate ids)
    InvalidStateException        - entity status forbids the operation
    PolicyViolationException     - conflict detected or notice period not met
    UpstreamUnavailableException - geocoding provider failure
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
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
    """Raised when an argument is malformed (InvalidArgument)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateException(DomainException):
    """Raised when the current status of an entity forbids the operation."""

    status_code = status.HTTP_409_CONFLICT


class PolicyViolationException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UpstreamUnavailableException(DomainException):
    """Raised when an external collaborator (geocoder) fails."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = {"Retry-After": "1"}
        return exc


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class BookingConflictException(PolicyViolationException):
    """Raised when a training window overlaps a participant's booked window."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot conflicts with an existing training",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class InsufficientNoticeException(PolicyViolationException):
    """Raised when a cancellation doesn't meet the minimum notice."""

    def __init__(self, required_minutes: int, provided_minutes: int):
        super().__init__(
            message=f"Trainings must be cancelled at least {required_minutes} minutes in advance",
            code="INSUFFICIENT_NOTICE",
            details={
                "required_minutes": required_minutes,
                "provided_minutes": provided_minutes,
            },
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
