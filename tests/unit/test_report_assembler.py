from datetime import date
from decimal import Decimal

from classdesk.core.enums import FeeStatus
from classdesk.services import report_assembler
from classdesk.services.aggregation_engine import (
    ClassMetrics,
    FeeLine,
    StudentAttendance,
)


def _metrics(class_id: str, title: str, location_id: str = "loc-1", location_name: str = "Colombo"):
    return ClassMetrics(
        class_id=class_id,
        title=title,
        subject="Science",
        level=None,
        teacher_id="t-1",
        teacher_name="Nimal Perera",
        location_id=location_id,
        location_name=location_name,
        capacity=10,
        current_enrollment=4,
    )


class _Record:
    def __init__(self, student_id: str, on: date, status: str = "present") -> None:
        self.student_id = student_id
        self.date = on
        self.status = status


def test_class_overview_sorted_case_insensitively() -> None:
    rows = report_assembler.class_overview(
        [_metrics("2", "biology"), _metrics("1", "Algebra"), _metrics("3", "Chemistry")]
    )
    assert [r.class_name for r in rows] == ["Algebra", "biology", "Chemistry"]


def test_class_overview_ties_break_on_id() -> None:
    rows = report_assembler.class_overview([_metrics("b", "Same"), _metrics("a", "Same")])
    assert [r.class_id for r in rows] == ["a", "b"]


def test_attendance_rows_ascend_by_date_then_names() -> None:
    m = _metrics("1", "Algebra")
    m.attendance_records = [
        _Record("s2", date(2024, 3, 5)),
        _Record("s1", date(2024, 3, 5), "absent"),
        _Record("s1", date(2024, 3, 4)),
    ]
    m.student_attendance = {
        "s1": StudentAttendance("s1", "amal Silva", present=1, total=2),
        "s2": StudentAttendance("s2", "Bimal Fernando", present=1, total=1),
    }

    rows = report_assembler.attendance([m])

    assert [(r.date, r.student_id) for r in rows] == [
        (date(2024, 3, 4), "s1"),
        (date(2024, 3, 5), "s1"),
        (date(2024, 3, 5), "s2"),
    ]
    assert rows[0].attendance_rate == 50


def test_fee_collection_filters_on_derived_status() -> None:
    m = _metrics("1", "Algebra")
    m.fee_lines = [
        FeeLine("f1", "s1", "Amal", Decimal("100.00"), Decimal("100.00"), Decimal("0.00"), None, None, FeeStatus.PAID),
        FeeLine("f2", "s2", "Bimal", Decimal("100.00"), Decimal("0.00"), Decimal("100.00"), None, None, FeeStatus.PENDING),
    ]
    assert [r.fee_id for r in report_assembler.fee_collection([m])] == ["f1", "f2"]
    assert [r.fee_id for r in report_assembler.fee_collection([m], status="pending")] == ["f2"]


def test_enrollment_by_location_groups_and_sorts() -> None:
    rows = report_assembler.enrollment_by_location(
        [
            _metrics("1", "Algebra", "loc-2", "Kandy"),
            _metrics("2", "Biology", "loc-1", "colombo"),
            _metrics("3", "Chemistry", "loc-2", "Kandy"),
        ]
    )
    assert [r.location_name for r in rows] == ["colombo", "Kandy"]
    assert rows[1].total_classes == 2
    assert rows[1].total_students == 8
    assert rows[1].occupancy_rate == 40


def test_money_serialises_as_json_number() -> None:
    m = _metrics("1", "Algebra")
    m.total_billed = Decimal("1500.50")
    m.total_revenue = Decimal("1000.25")
    m.pending_fees = Decimal("500.25")
    [row] = report_assembler.revenue_summary([m])
    payload = row.model_dump(mode="json", by_alias=True)
    assert payload["totalBilled"] == 1500.5
    assert payload["received"] == 1000.25
    assert payload["className"] == "Algebra"


def test_every_report_has_an_assembler() -> None:
    assert set(report_assembler.ASSEMBLERS) == {
        "class-overview",
        "attendance",
        "fee-collection",
        "enrollment-by-location",
        "schedule-summary",
        "revenue-summary",
    }
