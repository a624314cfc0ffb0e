# classdesk/core/exceptions.py
"""
Domain-specific exceptions for the classdesk backend.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Every domain exception carries a stable ``code`` that clients can
branch on without parsing the message.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: str = "DOMAIN_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
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
    """Raised when a field is malformed or missing."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "VALIDATION_ERROR"


class NotFoundException(DomainException):
    """Raised when a referenced class, location, teacher or student is absent."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class CapacityException(DomainException):
    """Raised when an enrollment would exceed the class capacity."""

    status_code = HTTP_422_UNPROCESSABLE
    default_code = "CAPACITY_EXCEEDED"


class ForbiddenException(DomainException):
    """Raised when the caller's role or ownership does not permit the action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "AUTHORIZATION_ERROR"


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "SERVICE_ERROR"


class InfrastructureException(ServiceException):
    """Raised when the backing store is unavailable. Never retried by the core."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "INFRASTRUCTURE_ERROR"


# Specific business exceptions


class ScheduleConflictException(ConflictException):
    """Raised when a session overlaps an existing scheduled session."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message
            or "Time conflict: this class is already scheduled at this location during the selected time",
            code="SCHEDULE_CONFLICT",
            details=details or {},
        )


class DuplicateEnrollmentException(ConflictException):
    """Raised when a student is already enrolled in the class."""

    def __init__(self, class_id: str, student_id: str):
        super().__init__(
            message="Student is already enrolled in this class",
            code="ALREADY_ENROLLED",
            details={"class_id": class_id, "student_id": student_id},
        )


class DuplicateAttendanceException(ConflictException):
    """Raised when a concurrent writer inserted the same attendance triple first."""

    def __init__(self, student_id: str, class_id: str, date: str):
        super().__init__(
            message="Attendance for this student, class and date was recorded concurrently",
            code="DUPLICATE_ATTENDANCE",
            details={"student_id": student_id, "class_id": class_id, "date": date},
        )


class ClassFullException(CapacityException):
    """Raised when a class is at full capacity."""

    def __init__(self, class_id: str, capacity: int):
        super().__init__(
            message="Class is at full capacity",
            details={"class_id": class_id, "capacity": capacity},
        )


class InvalidStatusTransitionException(ValidationException):
    """Raised when a session leaves a terminal status."""

    def __init__(self, current: str, requested: str):
        super().__init__(
            message=f"Cannot move a {current} session to {requested}",
            code="INVALID_STATUS_TRANSITION",
            details={"current_status": current, "requested_status": requested},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues or query failures.
    """


class IntegrityConflictException(RepositoryException):
    """Raised when a write violates a storage-level uniqueness or check constraint."""


class ReportTimeoutException(ServiceException):
    """Raised when a report does not finish within the configured bound."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_code = "REPORT_TIMEOUT"

    def __init__(self, report: str, timeout_seconds: float):
        super().__init__(
            message=f"Report '{report}' did not finish within {timeout_seconds:g} seconds",
            details={"report": report, "timeout_seconds": timeout_seconds},
        )
