# classdesk/repositories/attendance_repository.py
"""
Attendance Repository for classdesk

Marking attendance is an upsert on (student_id, class_id, date). SQLite and
PostgreSQL use the native ``INSERT ... ON CONFLICT DO UPDATE``; other
dialects fall back to read-then-write with the unique constraint as the
backstop.
"""

from __future__ import annotations

from datetime import date, datetime
import logging
from typing import Any, Dict, Iterable, List, Optional, cast

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
import ulid

from ..core.exceptions import IntegrityConflictException, RepositoryException
from ..models.attendance import Attendance
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_CONFLICT_COLUMNS = ["student_id", "class_id", "date"]


class AttendanceRepository(BaseRepository[Attendance]):
    def __init__(self, db: Session):
        super().__init__(db, Attendance)

    def upsert(
        self,
        *,
        student_id: str,
        class_id: str,
        on_date: date,
        status: str,
        notes: Optional[str] = None,
        marked_by: Optional[str] = None,
    ) -> Attendance:
        """
        Insert or update the record for (student, class, date).

        Returns the up-to-date row. Never produces a second row for the triple.
        """
        now = datetime.now()
        values: Dict[str, Any] = {
            "id": str(ulid.ULID()),
            "student_id": student_id,
            "class_id": class_id,
            "date": on_date,
            "status": status,
            "notes": notes,
            "marked_by": marked_by,
            "marked_at": now,
        }
        dialect = self.dialect_name

        try:
            if dialect in ("sqlite", "postgresql"):
                insert_fn = sqlite_insert if dialect == "sqlite" else pg_insert
                stmt = insert_fn(Attendance).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=_CONFLICT_COLUMNS,
                    set_={
                        "status": stmt.excluded.status,
                        "notes": stmt.excluded.notes,
                        "marked_by": stmt.excluded.marked_by,
                        "marked_at": stmt.excluded.marked_at,
                    },
                )
                self.db.execute(stmt)
                self.db.flush()
            else:
                existing = self.get_record(student_id, class_id, on_date)
                if existing is not None:
                    existing.status = status
                    existing.notes = notes
                    existing.marked_by = marked_by
                    existing.marked_at = now
                else:
                    self.db.add(Attendance(**values))
                self.db.flush()
        except IntegrityError as exc:
            self.logger.warning("Concurrent attendance write for %s/%s/%s", student_id, class_id, on_date)
            self.db.rollback()
            raise IntegrityConflictException(f"Integrity constraint violated: {exc.orig}") from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error upserting attendance: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to mark attendance: {str(e)}") from e

        row = self.get_record(student_id, class_id, on_date)
        if row is None:
            raise RepositoryException("Attendance row missing after upsert")
        return row

    def get_record(self, student_id: str, class_id: str, on_date: date) -> Optional[Attendance]:
        try:
            return cast(
                Optional[Attendance],
                self.db.query(Attendance)
                .filter(
                    Attendance.student_id == student_id,
                    Attendance.class_id == class_id,
                    Attendance.date == on_date,
                )
                .populate_existing()
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading attendance record: {str(e)}")
            raise RepositoryException(f"Failed to load attendance: {str(e)}")

    def list_for_class_date(self, class_id: str, on_date: date) -> List[Attendance]:
        try:
            return cast(
                List[Attendance],
                self.db.query(Attendance)
                .filter(Attendance.class_id == class_id, Attendance.date == on_date)
                .order_by(Attendance.marked_at)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing attendance: {str(e)}")
            raise RepositoryException(f"Failed to list attendance: {str(e)}")

    def get_for_classes(
        self,
        class_ids: Iterable[str],
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[Attendance]:
        """All records for the given classes with ``start <= date <= end``."""
        ids = list(class_ids)
        if not ids:
            return []
        try:
            query = self.db.query(Attendance).filter(Attendance.class_id.in_(ids))
            if start is not None:
                query = query.filter(Attendance.date >= start)
            if end is not None:
                query = query.filter(Attendance.date <= end)
            return cast(List[Attendance], query.order_by(Attendance.date).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading attendance for classes: {str(e)}")
            raise RepositoryException(f"Failed to load attendance: {str(e)}")

    def count_by_status_for_student(
        self,
        student_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Dict[str, int]:
        try:
            query = self.db.query(Attendance.status, func.count(Attendance.id)).filter(
                Attendance.student_id == student_id
            )
            if start is not None:
                query = query.filter(Attendance.date >= start)
            if end is not None:
                query = query.filter(Attendance.date <= end)
            rows = query.group_by(Attendance.status).all()
            return {status: int(count) for status, count in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error summarising attendance: {str(e)}")
            raise RepositoryException(f"Failed to summarise attendance: {str(e)}")
