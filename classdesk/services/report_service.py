# classdesk/services/report_service.py
"""
Report Service for classdesk

Runs a report request end to end:

    resolve window -> build scope -> load class set -> load records
    -> AggregationEngine -> ReportAssembler

Reports fail closed. If any sub-query fails the exception propagates and no
partial report is returned.
"""

from datetime import date
import logging
from typing import Any, Callable, Dict, Optional, Type

from sqlalchemy.orm import Session

from ..core.enums import FeeStatus
from ..core.exceptions import NotFoundException, ValidationException
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import Principal
from ..repositories import RepositoryFactory
from ..schemas.reports import (
    AttendanceReportRow,
    ClassOverviewRow,
    EnrollmentByLocationRow,
    FeeCollectionRow,
    ReportPayload,
    ReportTotalsSchema,
    ReportWindow,
    RevenueSummaryRow,
    ScheduleSummaryRow,
)
from . import report_assembler
from .aggregation_engine import AggregationEngine, summarize
from .base import BaseService
from .scope import ReportFilters, build_report_scope
from .time_window import TimeWindow, resolve_time_window

logger = logging.getLogger(__name__)

ROW_MODELS: Dict[str, Type[Any]] = {
    "class-overview": ClassOverviewRow,
    "attendance": AttendanceReportRow,
    "fee-collection": FeeCollectionRow,
    "enrollment-by-location": EnrollmentByLocationRow,
    "schedule-summary": ScheduleSummaryRow,
    "revenue-summary": RevenueSummaryRow,
}

REPORT_TYPES = tuple(ROW_MODELS)


class ReportService(BaseService):
    """Orchestrates scoped, windowed reports."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.attendance_repository = RepositoryFactory.create_attendance_repository(db)
        self.fee_repository = RepositoryFactory.create_fee_repository(db)
        self.schedule_repository = RepositoryFactory.create_schedule_repository(db)

    @BaseService.measure_operation("generate_report")
    def generate_report(
        self,
        report_type: str,
        principal: Principal,
        filters: ReportFilters,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        range_token: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ReportPayload:
        """
        Build one report.

        Raises:
            NotFoundException: unknown report type
            ValidationException: bad window or payment status filter
            ForbiddenException: caller's role has no report access
            RepositoryException: a sub-query failed; nothing partial is returned
        """
        if report_type not in ROW_MODELS:
            raise NotFoundException(
                f"Unknown report '{report_type}'",
                details={"report": report_type, "available": list(REPORT_TYPES)},
            )

        try:
            payload = self._build(report_type, principal, filters, from_date, to_date, range_token, today)
        except Exception:
            prometheus_metrics.inc_report(report_type, "error")
            raise

        prometheus_metrics.inc_report(report_type, "success")
        return payload

    def _build(
        self,
        report_type: str,
        principal: Principal,
        filters: ReportFilters,
        from_date: Optional[str],
        to_date: Optional[str],
        range_token: Optional[str],
        today: Optional[date],
    ) -> ReportPayload:
        window = resolve_time_window(from_date, to_date, range_token, today=today)
        scope = build_report_scope(principal, filters)
        fee_status = self._fee_status_filter(report_type, filters.status)

        classes = self.class_repository.list_for_scope(**scope.as_query_kwargs())
        records = self._load_records([c.id for c in classes], window)

        engine = AggregationEngine(window, today=today)
        metrics = engine.compute(classes, **records)

        if report_type == "fee-collection":
            rows = report_assembler.fee_collection(metrics, status=fee_status)
        else:
            rows = report_assembler.ASSEMBLERS[report_type](metrics)

        totals = summarize(metrics)
        self.logger.info(
            f"Report {report_type} for {principal.role.value} {principal.id}: "
            f"{len(classes)} classes, {len(rows)} rows"
        )

        row_model = ROW_MODELS[report_type]
        return ReportPayload[row_model](  # type: ignore[valid-type]
            report=report_type,
            window=ReportWindow(from_date=window.start, to_date=window.end),
            rows=rows,
            totals=ReportTotalsSchema(
                classes=totals.classes,
                students=totals.students,
                attendance_records=totals.attendance_records,
                average_attendance=totals.average_attendance,
                total_billed=totals.total_billed,
                total_revenue=totals.total_revenue,
                pending_fees=totals.pending_fees,
                collection_rate=totals.collection_rate,
                total_sessions=totals.total_sessions,
            ),
        )

    def _load_records(self, class_ids: list, window: TimeWindow) -> Dict[str, list]:
        """One query per collection covering every class in the set."""
        created_from, created_before = window.datetime_bounds()
        return {
            "attendance": self.attendance_repository.get_for_classes(class_ids, window.start, window.end),
            "fees": self.fee_repository.get_for_classes(class_ids, created_from, created_before),
            "sessions": self.schedule_repository.get_for_classes(class_ids, window.start, window.end),
            "enrollments": self.class_repository.get_enrollments_for_classes(class_ids),
        }

    @staticmethod
    def _fee_status_filter(report_type: str, status: Optional[str]) -> Optional[str]:
        if report_type != "fee-collection" or status is None:
            return None
        try:
            return FeeStatus(status.lower()).value
        except ValueError as exc:
            raise ValidationException(
                f"Unknown payment status '{status}'",
                details={"status": status, "allowed": [s.value for s in FeeStatus]},
            ) from exc


class ReportRunner:
    """
    Runs one report on a session of its own.

    The route waits on the worker thread with a timeout. When it gives up,
    the request session is closed while the worker may still be querying,
    so the worker never touches the request session.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def __call__(
        self,
        report_type: str,
        principal: Principal,
        filters: ReportFilters,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        range_token: Optional[str] = None,
    ) -> ReportPayload:
        db = self.session_factory()
        try:
            return ReportService(db).generate_report(
                report_type, principal, filters, from_date, to_date, range_token
            )
        finally:
            db.close()
