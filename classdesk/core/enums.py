# classdesk/core/enums.py
"""
Core enums for the classdesk backend.

This module contains enumeration types used throughout the application
for type safety and consistency. Stored values are the lowercase strings
the API exchanges with clients.
"""

from enum import Enum


class RoleName(str, Enum):
    """
    Caller roles recognised by the scoping and ownership checks.

    Roles are supplied by the identity collaborator; this core never
    assigns them.
    """

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class SessionStatus(str, Enum):
    """Lifecycle of a scheduled class session. Never reopened once left."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class FeeStatus(str, Enum):
    """Payment state of a student fee. Derived from amounts when reporting."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    CHECK = "check"


class ClassStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class FeeStructureStatus(str, Enum):
    """Only active fee structures can be assigned."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class UserStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class RangeToken(str, Enum):
    """Symbolic report windows relative to today."""

    THIS_WEEK = "this-week"
    THIS_MONTH = "this-month"
    THIS_QUARTER = "this-quarter"
    THIS_YEAR = "this-year"
