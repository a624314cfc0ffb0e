# classdesk/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
bound to the request's database session.
"""

import logging
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.attendance_service import AttendanceService
from ...services.conflict_checker import ConflictChecker
from ...services.enrollment_service import EnrollmentService
from ...services.fee_service import FeeService
from ...services.report_service import ReportRunner
from ...services.scheduling_service import SchedulingService
from .database import get_db, get_session_factory

logger = logging.getLogger(__name__)


def get_conflict_checker(db: Session = Depends(get_db)) -> ConflictChecker:
    return ConflictChecker(db)


def get_scheduling_service(
    db: Session = Depends(get_db),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
) -> SchedulingService:
    """
    Get scheduling service instance.

    Args:
        db: Database session
        conflict_checker: Overlap checker sharing the same session

    Returns:
        SchedulingService instance
    """
    return SchedulingService(db, conflict_checker)


def get_enrollment_service(db: Session = Depends(get_db)) -> EnrollmentService:
    return EnrollmentService(db)


def get_attendance_service(db: Session = Depends(get_db)) -> AttendanceService:
    return AttendanceService(db)


def get_fee_service(db: Session = Depends(get_db)) -> FeeService:
    return FeeService(db)


def get_report_runner(
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> ReportRunner:
    """Reports open their own session inside the worker thread."""
    return ReportRunner(session_factory)
