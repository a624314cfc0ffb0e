"""Report row schemas. One row model per report shape."""

import datetime as dt
from typing import Generic, List, Optional, TypeVar

from ..core.enums import AttendanceStatus, FeeStatus
from ._strict_base import Money, StrictModel

RowT = TypeVar("RowT")


class ReportWindow(StrictModel):
    from_date: Optional[dt.date] = None
    to_date: Optional[dt.date] = None


class ReportTotalsSchema(StrictModel):
    classes: int
    students: int
    attendance_records: int
    average_attendance: int
    total_billed: Money
    total_revenue: Money
    pending_fees: Money
    collection_rate: int
    total_sessions: int


class ClassOverviewRow(StrictModel):
    class_id: str
    class_name: str
    subject: str
    level: Optional[str] = None
    teacher_name: str
    location_name: str
    capacity: int
    total_students: int
    active_students: int
    average_attendance: int
    total_revenue: Money
    pending_fees: Money
    collection_rate: int


class AttendanceReportRow(StrictModel):
    student_id: str
    student_name: str
    class_id: str
    class_name: str
    date: dt.date
    status: AttendanceStatus
    attendance_rate: int


class FeeCollectionRow(StrictModel):
    fee_id: str
    student_id: str
    student_name: str
    class_id: str
    class_name: str
    total_amount: Money
    paid_amount: Money
    pending_amount: Money
    due_date: Optional[dt.date] = None
    last_payment_date: Optional[dt.date] = None
    payment_status: FeeStatus


class EnrollmentByLocationRow(StrictModel):
    location_id: str
    location_name: str
    total_classes: int
    total_students: int
    total_capacity: int
    occupancy_rate: int
    new_enrollments: int
    active_enrollments: int
    completed_enrollments: int


class ScheduleSummaryRow(StrictModel):
    class_id: str
    class_name: str
    total_scheduled: int
    completed: int
    cancelled: int
    upcoming: int
    attendance_rate: int
    avg_students_present: int


class RevenueSummaryRow(StrictModel):
    class_id: str
    class_name: str
    subject: str
    students: int
    total_billed: Money
    received: Money
    pending: Money
    collection_rate: int


class ReportPayload(StrictModel, Generic[RowT]):
    report: str
    window: ReportWindow
    rows: List[RowT]
    totals: ReportTotalsSchema
