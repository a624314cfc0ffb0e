# classdesk/models/__init__.py
"""
Database models for classdesk.

Importing this package registers every table on ``Base.metadata``.
"""

from .attendance import Attendance
from .enrollment import ClassEnrollment, StudentClass
from .fee import FeeStructure, StudentFee
from .location import Location
from .scheduled_class import ScheduledClass
from .school_class import SchoolClass
from .user import User

__all__ = [
    "Attendance",
    "ClassEnrollment",
    "FeeStructure",
    "Location",
    "ScheduledClass",
    "SchoolClass",
    "StudentClass",
    "StudentFee",
    "User",
]
