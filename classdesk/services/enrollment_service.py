# classdesk/services/enrollment_service.py
"""
Enrollment Service for classdesk

Enforces enrollment uniqueness and class capacity.

The roster rows and the class's ``current_enrollment`` counter are a
denormalised pair. ``_apply_enrollment`` is the only code path that
changes either, and it changes both inside one transaction. The
(class_id, student_id) unique constraint and the
``current_enrollment <= capacity`` check constraint back the in-memory
decisions up under concurrent writers.

Bulk enrollment is best-effort: ids are processed in input order, invalid
or blocked ids are skipped, and the exact number of new enrollments is
reported. It is not all-or-nothing.
"""

from dataclasses import dataclass, field
import logging
from typing import Collection, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import (
    ClassFullException,
    ConflictException,
    DuplicateEnrollmentException,
    ForbiddenException,
    IntegrityConflictException,
    NotFoundException,
)
from ..models.school_class import SchoolClass
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import Principal
from ..repositories import RepositoryFactory
from ..repositories.class_repository import ClassRepository
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrollmentAccepted:
    pass


@dataclass(frozen=True)
class AlreadyEnrolled:
    student_id: str


@dataclass(frozen=True)
class CapacityExceeded:
    capacity: int
    current_enrollment: int


EnrollmentDecision = Union[EnrollmentAccepted, AlreadyEnrolled, CapacityExceeded]


def evaluate_enrollment(
    enrolled_ids: Collection[str],
    current_enrollment: int,
    capacity: int,
    student_id: str,
) -> EnrollmentDecision:
    """Pure decision for adding ``student_id`` to a class roster."""
    if student_id in enrolled_ids:
        return AlreadyEnrolled(student_id)
    if current_enrollment >= capacity:
        return CapacityExceeded(capacity=capacity, current_enrollment=current_enrollment)
    return EnrollmentAccepted()


@dataclass
class BulkEnrollmentResult:
    class_id: str
    capacity: int
    current_enrollment: int = 0
    enrolled: List[str] = field(default_factory=list)
    already_enrolled: List[str] = field(default_factory=list)
    over_capacity: List[str] = field(default_factory=list)
    not_found: List[str] = field(default_factory=list)

    @property
    def new_enrollments(self) -> int:
        return len(self.enrolled)


@dataclass(frozen=True)
class EnrollmentRecount:
    class_id: str
    stored: int
    actual: int

    @property
    def repaired(self) -> bool:
        return self.stored != self.actual


class EnrollmentService(BaseService):
    """Single and bulk enrollment with capacity enforcement."""

    def __init__(self, db: Session, class_repository: Optional[ClassRepository] = None):
        super().__init__(db)
        self.class_repository = class_repository or RepositoryFactory.create_class_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("enroll_student")
    def enroll_student(self, class_id: str, student_id: str, principal: Principal) -> SchoolClass:
        """
        Enroll one student.

        Raises:
            NotFoundException: class or student absent
            ForbiddenException: caller is neither admin nor the class teacher
            DuplicateEnrollmentException: already on the roster
            ClassFullException: class at capacity
        """
        with self.transaction():
            school_class = self._load_class_for_write(class_id, principal)

            student = self.user_repository.get_by_id(student_id)
            if student is None or student.role != RoleName.STUDENT.value:
                prometheus_metrics.inc_enrollment_outcome("not_found")
                raise NotFoundException("Student not found", details={"student_id": student_id})

            enrolled_ids = set(self.class_repository.get_enrolled_student_ids(class_id))
            decision = evaluate_enrollment(
                enrolled_ids, school_class.current_enrollment, school_class.capacity, student_id
            )
            if isinstance(decision, AlreadyEnrolled):
                prometheus_metrics.inc_enrollment_outcome("already_enrolled")
                raise DuplicateEnrollmentException(class_id, student_id)
            if isinstance(decision, CapacityExceeded):
                prometheus_metrics.inc_enrollment_outcome("capacity_exceeded")
                raise ClassFullException(class_id, school_class.capacity)

            self._apply_enrollment(school_class, student_id)

        prometheus_metrics.inc_enrollment_outcome("accepted")
        self.logger.info(f"Enrolled student {student_id} in class {class_id}")
        return school_class

    @BaseService.measure_operation("bulk_enroll")
    def bulk_enroll(
        self, class_id: str, student_ids: List[str], principal: Principal
    ) -> BulkEnrollmentResult:
        """
        Best-effort enrollment of many students, in input order.

        Skips ids that are unknown or not students, already enrolled
        (including repeats within the request), or arrive after the class
        filled up. Only class-level failures (absent class, forbidden
        caller) abort the whole call.
        """
        with self.transaction():
            school_class = self._load_class_for_write(class_id, principal)
            result = BulkEnrollmentResult(class_id=class_id, capacity=school_class.capacity)

            students = self.user_repository.get_by_ids(student_ids)
            enrolled_ids = set(self.class_repository.get_enrolled_student_ids(class_id))

            for student_id in student_ids:
                student = students.get(student_id)
                if student is None or student.role != RoleName.STUDENT.value:
                    result.not_found.append(student_id)
                    continue

                decision = evaluate_enrollment(
                    enrolled_ids, school_class.current_enrollment, school_class.capacity, student_id
                )
                if isinstance(decision, AlreadyEnrolled):
                    result.already_enrolled.append(student_id)
                elif isinstance(decision, CapacityExceeded):
                    result.over_capacity.append(student_id)
                else:
                    self._apply_enrollment(school_class, student_id)
                    enrolled_ids.add(student_id)
                    result.enrolled.append(student_id)

            result.current_enrollment = school_class.current_enrollment

        skipped = len(result.already_enrolled) + len(result.over_capacity) + len(result.not_found)
        if skipped:
            self.logger.warning(
                f"Bulk enrollment for class {class_id} skipped {skipped} of {len(student_ids)} ids "
                f"(already enrolled: {len(result.already_enrolled)}, "
                f"over capacity: {len(result.over_capacity)}, not found: {len(result.not_found)})"
            )
        prometheus_metrics.inc_enrollment_outcome("accepted", result.new_enrollments)
        prometheus_metrics.inc_enrollment_outcome("already_enrolled", len(result.already_enrolled))
        prometheus_metrics.inc_enrollment_outcome("capacity_exceeded", len(result.over_capacity))
        prometheus_metrics.inc_enrollment_outcome("not_found", len(result.not_found))
        self.logger.info(f"Bulk enrollment for class {class_id}: {result.new_enrollments} new")
        return result

    @BaseService.measure_operation("reconcile_enrollment_count")
    def reconcile_enrollment_count(self, class_id: str, principal: Principal) -> EnrollmentRecount:
        """
        Recount roster rows and repair the class counter if it drifted. Admin only.

        Raises:
            ForbiddenException: caller is not an admin
            NotFoundException: class absent
        """
        if not principal.is_admin:
            raise ForbiddenException(
                "Only admins can reconcile enrollment counts",
                details={"required_role": RoleName.ADMIN.value},
            )

        with self.transaction():
            school_class = self.class_repository.get_for_update(class_id)
            if school_class is None:
                raise NotFoundException("Class not found", details={"class_id": class_id})

            recount = EnrollmentRecount(
                class_id=class_id,
                stored=school_class.current_enrollment or 0,
                actual=self.class_repository.count_enrollments(class_id),
            )
            if recount.repaired:
                self.logger.warning(
                    f"Enrollment counter drift on class {class_id}: "
                    f"stored {recount.stored}, actual {recount.actual}"
                )
                self.class_repository.apply_changes(school_class, current_enrollment=recount.actual)
        return recount

    def _load_class_for_write(self, class_id: str, principal: Principal) -> SchoolClass:
        school_class = self.class_repository.get_for_update(class_id)
        if school_class is None:
            raise NotFoundException("Class not found", details={"class_id": class_id})
        if not (principal.is_admin or (principal.is_teacher and school_class.teacher_id == principal.id)):
            raise ForbiddenException(
                "Only admins or the class teacher can enroll students",
                details={"class_id": class_id},
            )
        return school_class

    def _apply_enrollment(self, school_class: SchoolClass, student_id: str) -> None:
        """Roster row, student class-list row and counter, together."""
        class_id = school_class.id
        try:
            self.class_repository.add_enrollment(school_class, student_id)
        except IntegrityConflictException as exc:
            # A concurrent writer enrolled the student or filled the class first
            raise ConflictException(
                "Enrollment changed concurrently; no changes were applied",
                details={"class_id": class_id, "student_id": student_id},
            ) from exc
