# classdesk/services/scheduling_service.py
"""
Scheduling Service for classdesk

Books, edits and closes class sessions.

A booking is a read-then-decide sequence: ``ConflictChecker`` looks for
overlapping active sessions, then the row is written. The partial unique
index on (class_id, location_id, date, start_time) for scheduled sessions
catches the race where two writers pass the check at once; that violation
is reported as the same scheduling conflict.

Lifecycle: scheduled -> completed | cancelled. Sessions are never reopened.
"""

from datetime import date, time
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_QUERY_LIMIT
from ..core.enums import RoleName, SessionStatus
from ..core.exceptions import (
    ForbiddenException,
    IntegrityConflictException,
    InvalidStatusTransitionException,
    NotFoundException,
    ScheduleConflictException,
    ValidationException,
)
from ..models.location import Location
from ..models.scheduled_class import ScheduledClass
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import Principal
from ..repositories import RepositoryFactory
from ..schemas.scheduling import ScheduleCreate, ScheduleUpdate
from .base import BaseService
from .conflict_checker import BookingConflict, ConflictChecker

logger = logging.getLogger(__name__)


class SchedulingService(BaseService):
    """Service for class session scheduling."""

    def __init__(self, db: Session, conflict_checker: Optional[ConflictChecker] = None):
        super().__init__(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.repository = RepositoryFactory.create_schedule_repository(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.location_repository = RepositoryFactory.create_base_repository(db, Location)

    # Reads

    @BaseService.measure_operation("list_sessions")
    def list_sessions(
        self,
        principal: Principal,
        *,
        class_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
        on_date: Optional[date] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> List[ScheduledClass]:
        """List sessions. Teachers only ever see their own sessions."""
        if principal.is_teacher:
            teacher_id = principal.id
        return self.repository.list_sessions(
            class_id=class_id,
            teacher_id=teacher_id,
            on_date=on_date,
            status=status,
            skip=skip,
            limit=limit,
        )

    def get_session(self, session_id: str) -> ScheduledClass:
        session = self.repository.get_by_id(session_id)
        if session is None:
            raise NotFoundException("Scheduled class not found", details={"session_id": session_id})
        return session

    # Writes

    @BaseService.measure_operation("schedule_session")
    def schedule_session(self, data: ScheduleCreate, principal: Principal) -> ScheduledClass:
        """
        Book a class session after validation and conflict checking.

        Raises:
            ForbiddenException: caller is a student, or a teacher booking another teacher's class
            ValidationException: invalid time range or duration
            NotFoundException: class, location or teacher absent
            ScheduleConflictException: the slot overlaps an active session
        """
        if principal.is_student:
            raise ForbiddenException("Only admins and teachers can schedule classes")

        duration = self._validate_range(data.start_time, data.end_time, data.duration)
        school_class = self._load_references(data.class_id, data.location_id, data.teacher_id)

        if principal.is_teacher and school_class.teacher_id != principal.id:
            raise ForbiddenException(
                "Teachers can only schedule their own classes",
                details={"class_id": data.class_id},
            )

        self._ensure_slot_free(
            data.class_id, data.location_id, data.date, data.start_time, data.end_time
        )

        with self.transaction():
            try:
                session = self.repository.create(
                    class_id=data.class_id,
                    teacher_id=data.teacher_id,
                    location_id=data.location_id,
                    date=data.date,
                    start_time=data.start_time,
                    end_time=data.end_time,
                    duration=duration,
                    status=SessionStatus.SCHEDULED.value,
                    created_by=principal.id,
                )
            except IntegrityConflictException as exc:
                prometheus_metrics.inc_schedule_conflict("constraint")
                raise ScheduleConflictException(
                    details={"class_id": data.class_id, "date": data.date.isoformat()}
                ) from exc

        self.logger.info(
            f"Scheduled session {session.id} for class {data.class_id} on {data.date} "
            f"{data.start_time:%H:%M}-{data.end_time:%H:%M}"
        )
        return session

    @BaseService.measure_operation("update_session")
    def update_session(
        self, session_id: str, changes: ScheduleUpdate, principal: Principal
    ) -> ScheduledClass:
        """
        Edit a scheduled session. Admin only.

        The merged result is conflict-checked with the session itself excluded.
        """
        if not principal.is_admin:
            raise ForbiddenException(
                "Only admins can edit scheduled classes",
                details={"required_role": RoleName.ADMIN.value},
            )

        session = self.get_session(session_id)
        if not session.is_active:
            raise InvalidStatusTransitionException(session.status, "edited")

        updates: Dict[str, Any] = changes.model_dump(exclude_unset=True, exclude_none=True)
        merged = {
            "class_id": session.class_id,
            "teacher_id": session.teacher_id,
            "location_id": session.location_id,
            "date": session.date,
            "start_time": session.start_time,
            "end_time": session.end_time,
        }
        merged.update({k: v for k, v in updates.items() if k != "duration"})

        if "duration" in updates or "start_time" in updates or "end_time" in updates:
            declared = updates.get("duration")
        else:
            declared = session.duration
        duration = self._validate_range(merged["start_time"], merged["end_time"], declared)
        self._load_references(merged["class_id"], merged["location_id"], merged["teacher_id"])
        self._ensure_slot_free(
            merged["class_id"],
            merged["location_id"],
            merged["date"],
            merged["start_time"],
            merged["end_time"],
            exclude_session_id=session_id,
        )

        with self.transaction():
            try:
                self.repository.apply_changes(session, duration=duration, **merged)
            except IntegrityConflictException as exc:
                prometheus_metrics.inc_schedule_conflict("constraint")
                raise ScheduleConflictException(details={"session_id": session_id}) from exc

        self.logger.info(f"Updated session {session_id}")
        return session

    @BaseService.measure_operation("complete_session")
    def complete_session(self, session_id: str, principal: Principal) -> ScheduledClass:
        return self._transition(session_id, SessionStatus.COMPLETED, principal)

    @BaseService.measure_operation("cancel_session")
    def cancel_session(
        self, session_id: str, principal: Principal, note: Optional[str] = None
    ) -> ScheduledClass:
        return self._transition(session_id, SessionStatus.CANCELLED, principal, note=note)

    # Helpers

    def _transition(
        self,
        session_id: str,
        target: SessionStatus,
        principal: Principal,
        note: Optional[str] = None,
    ) -> ScheduledClass:
        if principal.is_student:
            raise ForbiddenException("Only admins and teachers can change a session's status")

        session = self.get_session(session_id)
        if principal.is_teacher and session.teacher_id != principal.id:
            raise ForbiddenException(
                "Teachers can only change their own sessions",
                details={"session_id": session_id},
            )
        if not session.is_active:
            raise InvalidStatusTransitionException(session.status, target.value)

        changes: Dict[str, Any] = {"status": target.value}
        if target == SessionStatus.CANCELLED:
            changes["cancellation_note"] = note

        with self.transaction():
            self.repository.apply_changes(session, **changes)

        self.logger.info(f"Session {session_id} moved to {target.value}")
        return session

    def _validate_range(self, start_time: time, end_time: time, duration: Optional[int]) -> int:
        result = self.conflict_checker.validate_time_range(start_time, end_time, duration)
        if not result["valid"]:
            raise ValidationException(
                result["reason"],
                details={k: v for k, v in result.items() if k not in ("valid", "reason")},
            )
        return int(result["duration_minutes"])

    def _load_references(self, class_id: str, location_id: str, teacher_id: str) -> Any:
        school_class = self.class_repository.get_by_id(class_id)
        if school_class is None:
            raise NotFoundException("Class not found", details={"class_id": class_id})
        if not self.location_repository.exists(id=location_id):
            raise NotFoundException("Location not found", details={"location_id": location_id})
        teacher = self.user_repository.get_by_id(teacher_id)
        if teacher is None or teacher.role != RoleName.TEACHER.value:
            raise NotFoundException("Teacher not found", details={"teacher_id": teacher_id})
        return school_class

    def _ensure_slot_free(
        self,
        class_id: str,
        location_id: str,
        on_date: date,
        start_time: time,
        end_time: time,
        exclude_session_id: Optional[str] = None,
    ) -> None:
        decision = self.conflict_checker.evaluate_booking(
            class_id, location_id, on_date, start_time, end_time, exclude_session_id
        )
        if isinstance(decision, BookingConflict):
            prometheus_metrics.inc_schedule_conflict("check")
            raise ScheduleConflictException(
                decision.describe(),
                details={"conflicts": decision.existing},
            )
