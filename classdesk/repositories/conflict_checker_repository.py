# classdesk/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository for classdesk

Loads the sessions a candidate booking could collide with. Only sessions
still in the ``scheduled`` status occupy their slot; completed and
cancelled sessions are never considered.
"""

from datetime import date
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import SessionStatus
from ..core.exceptions import RepositoryException
from ..models.scheduled_class import ScheduledClass
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ConflictCheckerRepository(BaseRepository[ScheduledClass]):
    """Repository for conflict checking data access."""

    def __init__(self, db: Session):
        super().__init__(db, ScheduledClass)
        self.logger = logging.getLogger(__name__)

    def get_sessions_for_conflict_check(
        self,
        class_id: str,
        location_id: str,
        check_date: date,
        exclude_session_id: Optional[str] = None,
    ) -> List[ScheduledClass]:
        """
        Get active sessions sharing (class, location, date).

        Args:
            class_id: The class being booked
            location_id: The location being booked
            check_date: The session date
            exclude_session_id: Session being edited, ignored in the result

        Returns:
            Active sessions ordered by start time
        """
        try:
            query = self.db.query(ScheduledClass).filter(
                ScheduledClass.class_id == class_id,
                ScheduledClass.location_id == location_id,
                ScheduledClass.date == check_date,
                ScheduledClass.status == SessionStatus.SCHEDULED.value,
            )

            if exclude_session_id:
                query = query.filter(ScheduledClass.id != exclude_session_id)

            return cast(List[ScheduledClass], query.order_by(ScheduledClass.start_time).all())

        except SQLAlchemyError as e:
            self.logger.error(f"Error getting sessions for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflicting sessions: {str(e)}")
