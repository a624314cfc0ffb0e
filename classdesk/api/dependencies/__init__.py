# classdesk/api/dependencies/__init__.py
"""
FastAPI dependency providers.

Routes import from here rather than from the submodules.
"""

from .auth import get_current_principal
from .database import get_db, get_session_factory
from .services import (
    get_attendance_service,
    get_enrollment_service,
    get_fee_service,
    get_report_runner,
    get_scheduling_service,
)

__all__ = [
    "get_attendance_service",
    "get_current_principal",
    "get_db",
    "get_enrollment_service",
    "get_fee_service",
    "get_report_runner",
    "get_scheduling_service",
    "get_session_factory",
]
