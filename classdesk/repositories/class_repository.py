# classdesk/repositories/class_repository.py
"""
Class Repository for classdesk

Owns the class-set query used by reporting and the enrollment writes. The
roster (``class_enrollments``), the student's class list
(``student_classes``) and the ``current_enrollment`` counter are written
here but only ever together, by ``EnrollmentService``.
"""

from datetime import datetime
import logging
from typing import Iterable, List, Optional, cast

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import EnrollmentStatus
from ..core.exceptions import IntegrityConflictException, RepositoryException
from ..models.enrollment import ClassEnrollment, StudentClass
from ..models.school_class import SchoolClass
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ClassRepository(BaseRepository[SchoolClass]):
    def __init__(self, db: Session):
        super().__init__(db, SchoolClass)

    # Class set

    def list_for_scope(
        self,
        *,
        class_id: Optional[str] = None,
        location_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
        subject: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[SchoolClass]:
        """
        Classes matching every supplied dimension, ordered by title.

        ``search`` is a case-insensitive substring match on title or subject.
        """
        try:
            query = self.db.query(SchoolClass)
            if class_id:
                query = query.filter(SchoolClass.id == class_id)
            if location_id:
                query = query.filter(SchoolClass.location_id == location_id)
            if teacher_id:
                query = query.filter(SchoolClass.teacher_id == teacher_id)
            if subject:
                query = query.filter(SchoolClass.subject == subject)
            if search:
                pattern = f"%{search.strip().lower()}%"
                query = query.filter(
                    or_(
                        func.lower(SchoolClass.title).like(pattern),
                        func.lower(SchoolClass.subject).like(pattern),
                    )
                )
            return cast(List[SchoolClass], query.order_by(SchoolClass.title, SchoolClass.id).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing classes for scope: {str(e)}")
            raise RepositoryException(f"Failed to list classes: {str(e)}")

    def get_for_update(self, class_id: str) -> Optional[SchoolClass]:
        """Load a class row, locking it where the dialect supports row locks."""
        try:
            query = self.db.query(SchoolClass).filter(SchoolClass.id == class_id)
            if self.supports_row_locks:
                query = query.with_for_update(of=SchoolClass)
            return cast(Optional[SchoolClass], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking class {class_id}: {str(e)}")
            raise RepositoryException(f"Failed to load class: {str(e)}")

    # Enrollment roster

    def get_enrolled_student_ids(self, class_id: str) -> List[str]:
        """Student ids on the roster, in enrollment order."""
        try:
            rows = (
                self.db.query(ClassEnrollment.student_id)
                .filter(ClassEnrollment.class_id == class_id)
                .order_by(ClassEnrollment.enrolled_at, ClassEnrollment.id)
                .all()
            )
            return [row[0] for row in rows]
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading roster for {class_id}: {str(e)}")
            raise RepositoryException(f"Failed to load roster: {str(e)}")

    def count_enrollments(self, class_id: str) -> int:
        try:
            return int(
                self.db.query(func.count(ClassEnrollment.id))
                .filter(ClassEnrollment.class_id == class_id)
                .scalar()
                or 0
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting enrollments for {class_id}: {str(e)}")
            raise RepositoryException(f"Failed to count enrollments: {str(e)}")

    def get_enrollments_for_classes(self, class_ids: Iterable[str]) -> List[ClassEnrollment]:
        ids = list(class_ids)
        if not ids:
            return []
        try:
            return cast(
                List[ClassEnrollment],
                self.db.query(ClassEnrollment)
                .filter(ClassEnrollment.class_id.in_(ids))
                .order_by(ClassEnrollment.enrolled_at)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading enrollments: {str(e)}")
            raise RepositoryException(f"Failed to load enrollments: {str(e)}")

    def add_enrollment(
        self,
        school_class: SchoolClass,
        student_id: str,
        enrolled_at: Optional[datetime] = None,
    ) -> ClassEnrollment:
        """
        Append the student to the roster and the student's class list,
        and bump the counter. Flushes but does not commit.
        """
        class_id = school_class.id
        try:
            enrollment = ClassEnrollment(
                class_id=class_id,
                student_id=student_id,
                status=EnrollmentStatus.ACTIVE.value,
                enrolled_at=enrolled_at or datetime.now(),
            )
            self.db.add(enrollment)
            # Roster uniqueness is checked here, before anything else is queued
            self.db.flush()

            already_listed = (
                self.db.query(StudentClass.id)
                .filter(StudentClass.student_id == student_id, StudentClass.class_id == class_id)
                .first()
            )
            if already_listed is None:
                self.db.add(StudentClass(student_id=student_id, class_id=class_id))
            school_class.current_enrollment = (school_class.current_enrollment or 0) + 1
            self.db.flush()
            return enrollment
        except IntegrityError as exc:
            self.logger.warning(
                "Integrity error enrolling %s in %s: %s", student_id, class_id, exc.orig
            )
            self.db.rollback()
            raise IntegrityConflictException(f"Integrity constraint violated: {exc.orig}") from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error enrolling {student_id} in {class_id}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to enroll student: {str(e)}") from e
