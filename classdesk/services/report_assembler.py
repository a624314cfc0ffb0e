# classdesk/services/report_assembler.py
"""
Report assembler.

Pure reshaping of ``ClassMetrics`` into the six report shapes. Nothing is
computed here beyond picking fields; every number comes from the engine.

Ordering is the same everywhere: time series ascend by date, listings
ascend by name (class title, location name, student name), compared
case-insensitively, with ids as the final tie-breaker.
"""

from typing import Callable, Dict, List, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..schemas.reports import (
    AttendanceReportRow,
    ClassOverviewRow,
    EnrollmentByLocationRow,
    FeeCollectionRow,
    RevenueSummaryRow,
    ScheduleSummaryRow,
)
from .aggregation_engine import ClassMetrics, rollup_by_location


def _name_key(value: str) -> str:
    return (value or "").casefold()


def class_overview(metrics: Sequence[ClassMetrics]) -> List[ClassOverviewRow]:
    rows = [
        ClassOverviewRow(
            class_id=m.class_id,
            class_name=m.title,
            subject=m.subject,
            level=m.level,
            teacher_name=m.teacher_name,
            location_name=m.location_name,
            capacity=m.capacity,
            total_students=m.current_enrollment,
            active_students=m.active_enrollments,
            average_attendance=m.average_attendance,
            total_revenue=m.total_revenue,
            pending_fees=m.pending_fees,
            collection_rate=m.collection_rate,
        )
        for m in metrics
    ]
    return sorted(rows, key=lambda r: (_name_key(r.class_name), r.class_id))


def attendance(metrics: Sequence[ClassMetrics]) -> List[AttendanceReportRow]:
    rows: List[AttendanceReportRow] = []
    for m in metrics:
        for record in m.attendance_records:
            student = m.student_attendance[record.student_id]
            rows.append(
                AttendanceReportRow(
                    student_id=record.student_id,
                    student_name=student.student_name,
                    class_id=m.class_id,
                    class_name=m.title,
                    date=record.date,
                    status=AttendanceStatus(record.status),
                    attendance_rate=student.attendance_rate,
                )
            )
    return sorted(
        rows,
        key=lambda r: (r.date, _name_key(r.class_name), _name_key(r.student_name), r.student_id),
    )


def fee_collection(
    metrics: Sequence[ClassMetrics], status: Optional[str] = None
) -> List[FeeCollectionRow]:
    """Fee rows, optionally restricted to one derived payment status."""
    rows = [
        FeeCollectionRow(
            fee_id=line.fee_id,
            student_id=line.student_id,
            student_name=line.student_name,
            class_id=m.class_id,
            class_name=m.title,
            total_amount=line.amount,
            paid_amount=line.paid_amount,
            pending_amount=line.pending_amount,
            due_date=line.due_date,
            last_payment_date=line.paid_date,
            payment_status=line.status,
        )
        for m in metrics
        for line in m.fee_lines
        if status is None or line.status.value == status
    ]
    return sorted(
        rows,
        key=lambda r: (_name_key(r.class_name), _name_key(r.student_name), r.fee_id),
    )


def enrollment_by_location(metrics: Sequence[ClassMetrics]) -> List[EnrollmentByLocationRow]:
    rows = [
        EnrollmentByLocationRow(
            location_id=loc.location_id,
            location_name=loc.location_name,
            total_classes=loc.total_classes,
            total_students=loc.total_students,
            total_capacity=loc.total_capacity,
            occupancy_rate=loc.occupancy_rate,
            new_enrollments=loc.new_enrollments,
            active_enrollments=loc.active_enrollments,
            completed_enrollments=loc.completed_enrollments,
        )
        for loc in rollup_by_location(metrics)
    ]
    return sorted(rows, key=lambda r: (_name_key(r.location_name), r.location_id))


def schedule_summary(metrics: Sequence[ClassMetrics]) -> List[ScheduleSummaryRow]:
    rows = [
        ScheduleSummaryRow(
            class_id=m.class_id,
            class_name=m.title,
            total_scheduled=m.total_sessions,
            completed=m.completed_sessions,
            cancelled=m.cancelled_sessions,
            upcoming=m.upcoming_sessions,
            attendance_rate=m.average_attendance,
            avg_students_present=m.avg_students_present,
        )
        for m in metrics
    ]
    return sorted(rows, key=lambda r: (_name_key(r.class_name), r.class_id))


def revenue_summary(metrics: Sequence[ClassMetrics]) -> List[RevenueSummaryRow]:
    rows = [
        RevenueSummaryRow(
            class_id=m.class_id,
            class_name=m.title,
            subject=m.subject,
            students=m.current_enrollment,
            total_billed=m.total_billed,
            received=m.total_revenue,
            pending=m.pending_fees,
            collection_rate=m.collection_rate,
        )
        for m in metrics
    ]
    return sorted(rows, key=lambda r: (_name_key(r.class_name), r.class_id))


ASSEMBLERS: Dict[str, Callable[..., list]] = {
    "class-overview": class_overview,
    "attendance": attendance,
    "fee-collection": fee_collection,
    "enrollment-by-location": enrollment_by_location,
    "schedule-summary": schedule_summary,
    "revenue-summary": revenue_summary,
}
