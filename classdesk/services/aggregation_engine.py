# classdesk/services/aggregation_engine.py
"""
Aggregation engine for class reports.

Given a scoped class set, a resolved ``TimeWindow`` and the attendance, fee,
session and enrollment records loaded for those classes, computes per-class
metrics and location roll-ups.

Join-key discipline: records arrive as one flat list per collection (one
query covering every class) and are bucketed by their own ``class_id``.
A class reads only its own bucket, so two classes sharing a teacher or a
location never see each other's records. Records whose ``class_id`` is
outside the class set are dropped.

Every ratio goes through ``percentage`` / ``_safe_div``: a zero denominator
yields 0, never an error. Percentages round half up to integers.

The engine is pure. It performs no I/O and knows nothing about roles.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, TypeVar

from ..core.enums import AttendanceStatus, EnrollmentStatus, FeeStatus, SessionStatus
from .fee_service import derive_fee_status, to_decimal
from .time_window import UNBOUNDED, TimeWindow

R = TypeVar("R")

_CENTS = Decimal("0.01")


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _safe_div(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        return Decimal("0")
    return numerator / denominator


def percentage(numerator: Any, denominator: Any) -> int:
    """Integer percentage of ``numerator / denominator``; 0 when the denominator is 0."""
    return round_half_up(_safe_div(to_decimal(numerator) * 100, to_decimal(denominator)))


def _ratio(numerator: Any, denominator: Any) -> int:
    return round_half_up(_safe_div(to_decimal(numerator), to_decimal(denominator)))


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def _as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass
class StudentAttendance:
    student_id: str
    student_name: str
    present: int = 0
    total: int = 0

    @property
    def attendance_rate(self) -> int:
        return percentage(self.present, self.total)


@dataclass
class FeeLine:
    """One fee row with its status recomputed from the amounts."""

    fee_id: str
    student_id: str
    student_name: str
    amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    due_date: Optional[date]
    paid_date: Optional[date]
    status: FeeStatus


@dataclass
class ClassMetrics:
    """Everything the report shapes need about one class."""

    class_id: str
    title: str
    subject: str
    level: Optional[str]
    teacher_id: str
    teacher_name: str
    location_id: str
    location_name: str
    capacity: int
    current_enrollment: int

    attendance_total: int = 0
    attendance_present: int = 0
    average_attendance: int = 0
    attendance_records: List[Any] = field(default_factory=list)
    student_attendance: Dict[str, StudentAttendance] = field(default_factory=dict)

    total_billed: Decimal = Decimal("0.00")
    total_revenue: Decimal = Decimal("0.00")
    pending_fees: Decimal = Decimal("0.00")
    collection_rate: int = 0
    fee_lines: List[FeeLine] = field(default_factory=list)
    fee_status_counts: Dict[str, int] = field(default_factory=dict)

    total_sessions: int = 0
    completed_sessions: int = 0
    cancelled_sessions: int = 0
    upcoming_sessions: int = 0
    avg_students_present: int = 0

    active_enrollments: int = 0
    completed_enrollments: int = 0
    new_enrollments: int = 0


@dataclass
class LocationMetrics:
    location_id: str
    location_name: str
    total_classes: int = 0
    total_students: int = 0
    total_capacity: int = 0
    occupancy_rate: int = 0
    new_enrollments: int = 0
    active_enrollments: int = 0
    completed_enrollments: int = 0
    total_billed: Decimal = Decimal("0.00")
    total_revenue: Decimal = Decimal("0.00")
    collection_rate: int = 0


@dataclass
class ReportTotals:
    classes: int = 0
    students: int = 0
    attendance_records: int = 0
    average_attendance: int = 0
    total_billed: Decimal = Decimal("0.00")
    total_revenue: Decimal = Decimal("0.00")
    pending_fees: Decimal = Decimal("0.00")
    collection_rate: int = 0
    total_sessions: int = 0


def bucket_by_class(records: Iterable[R], class_ids: Iterable[str]) -> Dict[str, List[R]]:
    """
    Group records by their own ``class_id``.

    Every class in ``class_ids`` gets a (possibly empty) bucket; records
    pointing at any other class are discarded.
    """
    buckets: Dict[str, List[R]] = {class_id: [] for class_id in class_ids}
    for record in records:
        bucket = buckets.get(getattr(record, "class_id", None))
        if bucket is not None:
            bucket.append(record)
    return buckets


def _person_name(person: Any, fallback: str = "") -> str:
    if person is None:
        return fallback
    full_name = getattr(person, "full_name", None)
    if full_name:
        return str(full_name)
    first = getattr(person, "first_name", "") or ""
    last = getattr(person, "last_name", "") or ""
    return f"{first} {last}".strip() or fallback


class AggregationEngine:
    """Computes per-class metrics over a resolved window."""

    def __init__(self, window: TimeWindow = UNBOUNDED, today: Optional[date] = None):
        self.window = window
        self.today = today or date.today()
        self._created_from, self._created_before = window.datetime_bounds()

    def compute(
        self,
        classes: Sequence[Any],
        attendance: Iterable[Any] = (),
        fees: Iterable[Any] = (),
        sessions: Iterable[Any] = (),
        enrollments: Iterable[Any] = (),
    ) -> List[ClassMetrics]:
        """Metrics for each class, in the order the classes were given."""
        class_ids = [c.id for c in classes]
        attendance_by_class = bucket_by_class(attendance, class_ids)
        fees_by_class = bucket_by_class(fees, class_ids)
        sessions_by_class = bucket_by_class(sessions, class_ids)
        enrollments_by_class = bucket_by_class(enrollments, class_ids)

        return [
            self.compute_class(
                school_class,
                attendance_by_class[school_class.id],
                fees_by_class[school_class.id],
                sessions_by_class[school_class.id],
                enrollments_by_class[school_class.id],
            )
            for school_class in classes
        ]

    def compute_class(
        self,
        school_class: Any,
        attendance: Sequence[Any],
        fees: Sequence[Any],
        sessions: Sequence[Any],
        enrollments: Sequence[Any],
    ) -> ClassMetrics:
        metrics = ClassMetrics(
            class_id=school_class.id,
            title=school_class.title,
            subject=school_class.subject,
            level=getattr(school_class, "level", None),
            teacher_id=school_class.teacher_id,
            teacher_name=_person_name(getattr(school_class, "teacher", None)),
            location_id=school_class.location_id,
            location_name=getattr(getattr(school_class, "location", None), "name", "") or "",
            capacity=school_class.capacity or 0,
            current_enrollment=school_class.current_enrollment or 0,
        )
        self._apply_attendance(metrics, attendance)
        self._apply_fees(metrics, fees)
        self._apply_sessions(metrics, sessions)
        self._apply_enrollments(metrics, enrollments)
        return metrics

    # Per-collection passes

    def _apply_attendance(self, metrics: ClassMetrics, records: Sequence[Any]) -> None:
        in_window = [r for r in records if self.window.contains(_as_date(r.date))]
        present = AttendanceStatus.PRESENT.value

        metrics.attendance_records = in_window
        metrics.attendance_total = len(in_window)
        metrics.attendance_present = sum(1 for r in in_window if r.status == present)
        metrics.average_attendance = percentage(metrics.attendance_present, metrics.attendance_total)

        per_student: Dict[str, StudentAttendance] = {}
        for record in in_window:
            entry = per_student.get(record.student_id)
            if entry is None:
                entry = StudentAttendance(
                    student_id=record.student_id,
                    student_name=_person_name(getattr(record, "student", None), record.student_id),
                )
                per_student[record.student_id] = entry
            entry.total += 1
            if record.status == present:
                entry.present += 1
        metrics.student_attendance = per_student

    def _fee_in_window(self, fee: Any) -> bool:
        if self._created_from is None or self._created_before is None:
            return True
        created_at = fee.created_at
        if not isinstance(created_at, datetime):
            created_at = datetime.combine(created_at, datetime.min.time())
        return self._created_from <= created_at < self._created_before

    def _apply_fees(self, metrics: ClassMetrics, fees: Sequence[Any]) -> None:
        billed = Decimal("0")
        paid_total = Decimal("0")
        counts: Dict[str, int] = {status.value: 0 for status in FeeStatus}
        lines: List[FeeLine] = []

        for fee in fees:
            if not self._fee_in_window(fee):
                continue
            amount = to_decimal(fee.amount)
            paid = to_decimal(fee.paid_amount)
            billed += amount
            paid_total += paid

            status = derive_fee_status(amount, paid, fee.due_date, self.today)
            counts[status.value] += 1
            lines.append(
                FeeLine(
                    fee_id=fee.id,
                    student_id=fee.student_id,
                    student_name=_person_name(getattr(fee, "student", None), fee.student_id),
                    amount=_money(amount),
                    paid_amount=_money(paid),
                    pending_amount=_money(amount - paid),
                    due_date=fee.due_date,
                    paid_date=_as_date(fee.paid_date),
                    status=status,
                )
            )

        metrics.total_billed = _money(billed)
        metrics.total_revenue = _money(paid_total)
        metrics.pending_fees = _money(billed - paid_total)
        metrics.collection_rate = percentage(paid_total, billed)
        metrics.fee_lines = lines
        metrics.fee_status_counts = counts

    def _apply_sessions(self, metrics: ClassMetrics, sessions: Sequence[Any]) -> None:
        in_window = [s for s in sessions if self.window.contains(_as_date(s.date))]
        metrics.total_sessions = len(in_window)
        metrics.completed_sessions = sum(
            1 for s in in_window if s.status == SessionStatus.COMPLETED.value
        )
        metrics.cancelled_sessions = sum(
            1 for s in in_window if s.status == SessionStatus.CANCELLED.value
        )
        metrics.upcoming_sessions = sum(
            1 for s in in_window if s.status == SessionStatus.SCHEDULED.value
        )
        metrics.avg_students_present = _ratio(metrics.attendance_present, metrics.total_sessions)

    def _apply_enrollments(self, metrics: ClassMetrics, enrollments: Sequence[Any]) -> None:
        metrics.active_enrollments = sum(
            1 for e in enrollments if e.status == EnrollmentStatus.ACTIVE.value
        )
        metrics.completed_enrollments = sum(
            1 for e in enrollments if e.status == EnrollmentStatus.COMPLETED.value
        )
        metrics.new_enrollments = sum(
            1
            for e in enrollments
            if e.enrolled_at is not None and self.window.contains(_as_date(e.enrolled_at))
        )


def rollup_by_location(class_metrics: Iterable[ClassMetrics]) -> List[LocationMetrics]:
    """Sum per-class metrics per location. Rates are recomputed from the sums."""
    rollups: Dict[str, LocationMetrics] = {}
    billed: Dict[str, Decimal] = defaultdict(Decimal)
    revenue: Dict[str, Decimal] = defaultdict(Decimal)

    for metrics in class_metrics:
        entry = rollups.get(metrics.location_id)
        if entry is None:
            entry = LocationMetrics(
                location_id=metrics.location_id, location_name=metrics.location_name
            )
            rollups[metrics.location_id] = entry
        entry.total_classes += 1
        entry.total_students += metrics.current_enrollment
        entry.total_capacity += metrics.capacity
        entry.new_enrollments += metrics.new_enrollments
        entry.active_enrollments += metrics.active_enrollments
        entry.completed_enrollments += metrics.completed_enrollments
        billed[metrics.location_id] += metrics.total_billed
        revenue[metrics.location_id] += metrics.total_revenue

    for location_id, entry in rollups.items():
        entry.occupancy_rate = percentage(entry.total_students, entry.total_capacity)
        entry.total_billed = _money(billed[location_id])
        entry.total_revenue = _money(revenue[location_id])
        entry.collection_rate = percentage(entry.total_revenue, entry.total_billed)

    return list(rollups.values())


def summarize(class_metrics: Sequence[ClassMetrics]) -> ReportTotals:
    """Totals across the whole class set."""
    attendance_total = sum(m.attendance_total for m in class_metrics)
    attendance_present = sum(m.attendance_present for m in class_metrics)
    billed = sum((m.total_billed for m in class_metrics), Decimal("0"))
    revenue = sum((m.total_revenue for m in class_metrics), Decimal("0"))

    return ReportTotals(
        classes=len(class_metrics),
        students=sum(m.current_enrollment for m in class_metrics),
        attendance_records=attendance_total,
        average_attendance=percentage(attendance_present, attendance_total),
        total_billed=_money(billed),
        total_revenue=_money(revenue),
        pending_fees=_money(billed - revenue),
        collection_rate=percentage(revenue, billed),
        total_sessions=sum(m.total_sessions for m in class_metrics),
    )
