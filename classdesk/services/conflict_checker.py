# classdesk/services/conflict_checker.py
"""
Conflict Checker Service for classdesk

Handles booking conflict detection for class sessions:
- Checking a candidate slot against active sessions of the same
  class, location and date
- Validating session time ranges

Intervals are half-open: a session occupies [start_time, end_time).
Two sessions that merely touch (one ends exactly when the other starts)
do not conflict. The checker never reschedules or merges; it only decides.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..repositories import RepositoryFactory
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from .base import BaseService

logger = logging.getLogger(__name__)


def intervals_overlap(a_start: time, a_end: time, b_start: time, b_end: time) -> bool:
    """Half-open overlap test for [a_start, a_end) and [b_start, b_end)."""
    return a_start < b_end and a_end > b_start


def minutes_between(start_time: time, end_time: time) -> int:
    reference = date(2000, 1, 1)
    delta = datetime.combine(reference, end_time) - datetime.combine(reference, start_time)
    return int(delta.total_seconds() // 60)


@dataclass(frozen=True)
class BookingAccepted:
    """The candidate slot is free."""


@dataclass(frozen=True)
class BookingConflict:
    """The candidate slot overlaps one or more active sessions."""

    existing: List[Dict[str, Any]] = field(default_factory=list)

    def describe(self) -> str:
        first = self.existing[0]
        return (
            f"Time conflict: overlaps the session {first['session_id']} scheduled "
            f"{first['start_time']}-{first['end_time']} on {first['date']}"
        )


BookingDecision = Union[BookingAccepted, BookingConflict]


class ConflictChecker(BaseService):
    """
    Service for checking session conflicts and time validation.

    Centralizes conflict detection so scheduling and rescheduling apply
    the same rule.
    """

    def __init__(self, db: Session, repository: Optional[ConflictCheckerRepository] = None):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            repository: Optional ConflictCheckerRepository instance
        """
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_conflict_checker_repository(db)

    @BaseService.measure_operation("check_session_conflicts")
    def check_session_conflicts(
        self,
        class_id: str,
        location_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        exclude_session_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Check if a time range conflicts with active sessions.

        Args:
            class_id: The class being booked
            location_id: The location being booked
            check_date: The session date
            start_time: Start of the candidate range
            end_time: End of the candidate range
            exclude_session_id: Session being edited, ignored in the check

        Returns:
            List of conflicts with session details
        """
        sessions = self.repository.get_sessions_for_conflict_check(
            class_id, location_id, check_date, exclude_session_id
        )

        conflicts = []
        for session in sessions:
            if intervals_overlap(start_time, end_time, session.start_time, session.end_time):
                conflicts.append(
                    {
                        "session_id": session.id,
                        "class_id": session.class_id,
                        "location_id": session.location_id,
                        "date": session.date.isoformat(),
                        "start_time": session.start_time.strftime("%H:%M"),
                        "end_time": session.end_time.strftime("%H:%M"),
                        "teacher_id": session.teacher_id,
                        "status": session.status,
                    }
                )

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} session conflicts for class {class_id} at {location_id} "
                f"on {check_date} between {start_time}-{end_time}"
            )

        return conflicts

    def evaluate_booking(
        self,
        class_id: str,
        location_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        exclude_session_id: Optional[str] = None,
    ) -> BookingDecision:
        """Tagged outcome for a candidate slot."""
        conflicts = self.check_session_conflicts(
            class_id, location_id, check_date, start_time, end_time, exclude_session_id
        )
        if conflicts:
            return BookingConflict(existing=conflicts)
        return BookingAccepted()

    def validate_time_range(
        self,
        start_time: time,
        end_time: time,
        duration: Optional[int] = None,
        min_duration_minutes: Optional[int] = None,
        max_duration_minutes: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Validate a time range for basic constraints.

        Args:
            start_time: Start time
            end_time: End time
            duration: Declared duration in minutes, must match the range when given
            min_duration_minutes: Minimum allowed duration (settings default)
            max_duration_minutes: Maximum allowed duration (settings default)

        Returns:
            Validation result with details
        """
        min_minutes = min_duration_minutes or settings.min_session_minutes
        max_minutes = max_duration_minutes or settings.max_session_minutes

        if end_time <= start_time:
            return {"valid": False, "reason": "End time must be after start time"}

        duration_minutes = minutes_between(start_time, end_time)

        if duration_minutes < min_minutes:
            return {
                "valid": False,
                "reason": f"Duration must be at least {min_minutes} minutes",
                "duration_minutes": duration_minutes,
            }

        if duration_minutes > max_minutes:
            return {
                "valid": False,
                "reason": f"Duration cannot exceed {max_minutes} minutes",
                "duration_minutes": duration_minutes,
            }

        if duration is not None and duration != duration_minutes:
            return {
                "valid": False,
                "reason": f"Duration {duration} does not match the {duration_minutes} minute time range",
                "duration_minutes": duration_minutes,
            }

        return {"valid": True, "duration_minutes": duration_minutes}
