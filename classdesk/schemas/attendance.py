"""Attendance marking schemas."""

import datetime as dt
from typing import Any, Dict, Optional

from pydantic import Field

from ..core.enums import AttendanceStatus
from ._strict_base import StrictModel, StrictRequestModel


class AttendanceMark(StrictRequestModel):
    student_id: str = Field(min_length=1)
    class_id: str = Field(min_length=1)
    date: dt.date
    status: AttendanceStatus
    notes: Optional[str] = Field(default=None, max_length=1000)


class AttendanceResponse(StrictModel):
    id: str
    student_id: str
    student_name: Optional[str] = None
    class_id: str
    date: dt.date
    status: AttendanceStatus
    notes: Optional[str] = None
    marked_by: Optional[str] = None
    marked_at: dt.datetime

    @classmethod
    def from_model(cls, record: Any) -> "AttendanceResponse":
        student = getattr(record, "student", None)
        return cls(
            id=record.id,
            student_id=record.student_id,
            student_name=student.full_name if student else None,
            class_id=record.class_id,
            date=record.date,
            status=AttendanceStatus(record.status),
            notes=record.notes,
            marked_by=record.marked_by,
            marked_at=record.marked_at,
        )


class StudentAttendanceSummary(StrictModel):
    student_id: str
    total_records: int
    present: int
    absent: int
    late: int
    excused: int
    attendance_rate: int
    by_status: Dict[str, int] = Field(default_factory=dict)


class ClassAttendanceSummary(StrictModel):
    """Per-class attendance counts over a window. The rate is present / marked."""

    class_id: str
    title: str
    location_name: str
    total_marked: int
    present: int
    absent: int
    late: int
    excused: int
    attendance_rate: int
