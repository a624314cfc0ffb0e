# classdesk/repositories/schedule_repository.py
"""
Schedule Repository for classdesk

Read paths for scheduled sessions: listing with filters, and the windowed
bulk load used by reporting.
"""

from datetime import date
import logging
from typing import Iterable, List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_QUERY_LIMIT
from ..core.exceptions import RepositoryException
from ..models.scheduled_class import ScheduledClass
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ScheduleRepository(BaseRepository[ScheduledClass]):
    def __init__(self, db: Session):
        super().__init__(db, ScheduledClass)

    def list_sessions(
        self,
        *,
        class_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
        location_id: Optional[str] = None,
        on_date: Optional[date] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> List[ScheduledClass]:
        """List sessions ordered by date and start time. ``None`` filters are ignored."""
        try:
            query = self.db.query(ScheduledClass)
            if class_id:
                query = query.filter(ScheduledClass.class_id == class_id)
            if teacher_id:
                query = query.filter(ScheduledClass.teacher_id == teacher_id)
            if location_id:
                query = query.filter(ScheduledClass.location_id == location_id)
            if on_date:
                query = query.filter(ScheduledClass.date == on_date)
            if status:
                query = query.filter(ScheduledClass.status == status)

            query = query.order_by(
                ScheduledClass.date, ScheduledClass.start_time, ScheduledClass.id
            )
            return cast(List[ScheduledClass], query.offset(skip).limit(limit).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing sessions: {str(e)}")
            raise RepositoryException(f"Failed to list sessions: {str(e)}")

    def get_for_classes(
        self,
        class_ids: Iterable[str],
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[ScheduledClass]:
        """
        All sessions of the given classes with ``start <= date <= end``.

        One query for every class; callers bucket rows by ``class_id``.
        """
        ids = list(class_ids)
        if not ids:
            return []
        try:
            query = self.db.query(ScheduledClass).filter(ScheduledClass.class_id.in_(ids))
            if start is not None:
                query = query.filter(ScheduledClass.date >= start)
            if end is not None:
                query = query.filter(ScheduledClass.date <= end)
            return cast(
                List[ScheduledClass],
                query.order_by(ScheduledClass.date, ScheduledClass.start_time).all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading sessions for classes: {str(e)}")
            raise RepositoryException(f"Failed to load sessions: {str(e)}")
