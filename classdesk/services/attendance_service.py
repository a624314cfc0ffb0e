# classdesk/services/attendance_service.py
"""
Attendance Service for classdesk

Marking is idempotent: marking the same (student, class, date) again
updates the existing record. The storage-level unique constraint makes a
duplicate row impossible even when two markers race.
"""

from collections import Counter
from datetime import date
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import AttendanceStatus, RoleName
from ..core.exceptions import (
    DuplicateAttendanceException,
    ForbiddenException,
    IntegrityConflictException,
    NotFoundException,
)
from ..models.attendance import Attendance
from ..principal import Principal
from ..repositories import RepositoryFactory
from ..repositories.attendance_repository import AttendanceRepository
from ..schemas.attendance import (
    AttendanceMark,
    ClassAttendanceSummary,
    StudentAttendanceSummary,
)
from .aggregation_engine import AggregationEngine, percentage
from .base import BaseService
from .scope import ReportFilters, build_report_scope
from .time_window import UNBOUNDED, TimeWindow

logger = logging.getLogger(__name__)


class AttendanceService(BaseService):
    def __init__(self, db: Session, repository: Optional[AttendanceRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_attendance_repository(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("mark_attendance")
    def mark_attendance(self, data: AttendanceMark, principal: Principal) -> Attendance:
        """
        Create or update the attendance record for (student, class, date).

        Raises:
            ForbiddenException: caller is a student, or a teacher of another class
            NotFoundException: class or student absent
            DuplicateAttendanceException: lost a race the upsert could not absorb
        """
        if principal.is_student:
            raise ForbiddenException("Only admins and teachers can mark attendance")

        school_class = self.class_repository.get_by_id(data.class_id)
        if school_class is None:
            raise NotFoundException("Class not found", details={"class_id": data.class_id})
        if principal.is_teacher and school_class.teacher_id != principal.id:
            raise ForbiddenException(
                "Teachers can only mark attendance for their own classes",
                details={"class_id": data.class_id},
            )

        student = self.user_repository.get_by_id(data.student_id)
        if student is None or student.role != RoleName.STUDENT.value:
            raise NotFoundException("Student not found", details={"student_id": data.student_id})

        with self.transaction():
            try:
                record = self.repository.upsert(
                    student_id=data.student_id,
                    class_id=data.class_id,
                    on_date=data.date,
                    status=data.status.value,
                    notes=data.notes,
                    marked_by=principal.id,
                )
            except IntegrityConflictException as exc:
                raise DuplicateAttendanceException(
                    data.student_id, data.class_id, data.date.isoformat()
                ) from exc

        self.logger.info(
            f"Marked {data.status.value} for student {data.student_id} "
            f"in class {data.class_id} on {data.date}"
        )
        return record

    @BaseService.measure_operation("list_attendance")
    def list_for_class(self, class_id: str, on_date: date, principal: Principal) -> List[Attendance]:
        if principal.is_student:
            raise ForbiddenException("Students cannot list class attendance")
        school_class = self.class_repository.get_by_id(class_id)
        if school_class is None:
            raise NotFoundException("Class not found", details={"class_id": class_id})
        if principal.is_teacher and school_class.teacher_id != principal.id:
            raise ForbiddenException(
                "Teachers can only view attendance for their own classes",
                details={"class_id": class_id},
            )
        return self.repository.list_for_class_date(class_id, on_date)

    @BaseService.measure_operation("student_attendance_summary")
    def student_summary(
        self, principal: Principal, window: TimeWindow = UNBOUNDED
    ) -> StudentAttendanceSummary:
        """The calling student's own attendance totals."""
        if not principal.is_student:
            raise ForbiddenException("Only students have an attendance summary")

        counts = self.repository.count_by_status_for_student(principal.id, window.start, window.end)
        total = sum(counts.values())
        present = counts.get(AttendanceStatus.PRESENT.value, 0)
        return StudentAttendanceSummary(
            student_id=principal.id,
            total_records=total,
            present=present,
            absent=counts.get(AttendanceStatus.ABSENT.value, 0),
            late=counts.get(AttendanceStatus.LATE.value, 0),
            excused=counts.get(AttendanceStatus.EXCUSED.value, 0),
            attendance_rate=percentage(present, total),
            by_status=counts,
        )

    @BaseService.measure_operation("class_attendance_summary")
    def class_summary(
        self,
        principal: Principal,
        window: TimeWindow = UNBOUNDED,
        filters: Optional[ReportFilters] = None,
    ) -> List[ClassAttendanceSummary]:
        """
        Attendance counts per class in the caller's scope, by class title.

        Teachers see their own classes only; students are refused.
        """
        scope = build_report_scope(principal, filters or ReportFilters())
        classes = self.class_repository.list_for_scope(**scope.as_query_kwargs())
        records = self.repository.get_for_classes([c.id for c in classes], window.start, window.end)
        metrics = AggregationEngine(window).compute(classes, attendance=records)

        summaries = []
        for m in metrics:
            counts = Counter(r.status for r in m.attendance_records)
            summaries.append(
                ClassAttendanceSummary(
                    class_id=m.class_id,
                    title=m.title,
                    location_name=m.location_name,
                    total_marked=m.attendance_total,
                    present=m.attendance_present,
                    absent=counts[AttendanceStatus.ABSENT.value],
                    late=counts[AttendanceStatus.LATE.value],
                    excused=counts[AttendanceStatus.EXCUSED.value],
                    attendance_rate=m.average_attendance,
                )
            )
        return sorted(summaries, key=lambda s: (s.title.lower(), s.class_id))
