# classdesk/routes/v1/reports.py
"""
Report routes - API v1

Six read-only reports share one query surface:

    classId|all, locationId|all, teacherId|all, subject|all, status|all,
    search, and either from/to dates or a range token.

Each report runs in a worker thread on its own database session and is
bounded by ``settings.report_timeout_seconds``. A report either completes
in full or fails; partial results are never returned.
"""

import asyncio
from dataclasses import dataclass
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_current_principal, get_report_runner
from ...core.config import settings
from ...core.exceptions import DomainException, ReportTimeoutException
from ...principal import Principal
from ...schemas.base_responses import SuccessEnvelope
from ...schemas.reports import (
    AttendanceReportRow,
    ClassOverviewRow,
    EnrollmentByLocationRow,
    FeeCollectionRow,
    ReportPayload,
    RevenueSummaryRow,
    ScheduleSummaryRow,
)
from ...services.report_service import ReportRunner
from ...services.scope import ReportFilters
from ._errors import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reports-v1"])


@dataclass(frozen=True)
class ReportQuery:
    filters: ReportFilters
    from_date: Optional[str]
    to_date: Optional[str]
    range_token: Optional[str]


def get_report_query(
    class_id: Optional[str] = Query(None, alias="classId"),
    location_id: Optional[str] = Query(None, alias="locationId"),
    teacher_id: Optional[str] = Query(None, alias="teacherId"),
    subject: Optional[str] = Query(None),
    report_status: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=200),
    from_date: Optional[str] = Query(None, alias="from", description="YYYY-MM-DD"),
    to_date: Optional[str] = Query(None, alias="to", description="YYYY-MM-DD"),
    range_token: Optional[str] = Query(
        None,
        alias="range",
        description="this-week, this-month, this-quarter, this-year or all",
    ),
) -> ReportQuery:
    return ReportQuery(
        filters=ReportFilters.from_query(
            class_id=class_id,
            location_id=location_id,
            teacher_id=teacher_id,
            subject=subject,
            status=report_status,
            search=search,
        ),
        from_date=from_date,
        to_date=to_date,
        range_token=range_token,
    )


async def _run_report(
    report_type: str,
    query: ReportQuery,
    principal: Principal,
    runner: ReportRunner,
) -> SuccessEnvelope:
    timeout = settings.report_timeout_seconds
    try:
        payload = await asyncio.wait_for(
            asyncio.to_thread(
                runner,
                report_type,
                principal,
                query.filters,
                query.from_date,
                query.to_date,
                query.range_token,
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.error(f"Report {report_type} exceeded {timeout}s for {principal.id}")
        handle_domain_exception(ReportTimeoutException(report_type, timeout))
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(data=payload)


@router.get("/class-overview", response_model=SuccessEnvelope[ReportPayload[ClassOverviewRow]])
async def class_overview_report(
    query: ReportQuery = Depends(get_report_query),
    principal: Principal = Depends(get_current_principal),
    runner: ReportRunner = Depends(get_report_runner),
) -> SuccessEnvelope:
    """Per class: roster size, attendance, revenue and collection rate."""
    return await _run_report("class-overview", query, principal, runner)


@router.get("/attendance", response_model=SuccessEnvelope[ReportPayload[AttendanceReportRow]])
async def attendance_report(
    query: ReportQuery = Depends(get_report_query),
    principal: Principal = Depends(get_current_principal),
    runner: ReportRunner = Depends(get_report_runner),
) -> SuccessEnvelope:
    """One row per attendance record, with the student's rate in that class."""
    return await _run_report("attendance", query, principal, runner)


@router.get("/fee-collection", response_model=SuccessEnvelope[ReportPayload[FeeCollectionRow]])
async def fee_collection_report(
    query: ReportQuery = Depends(get_report_query),
    principal: Principal = Depends(get_current_principal),
    runner: ReportRunner = Depends(get_report_runner),
) -> SuccessEnvelope:
    """One row per fee. ``status`` filters on the derived payment status."""
    return await _run_report("fee-collection", query, principal, runner)


@router.get(
    "/enrollment-by-location",
    response_model=SuccessEnvelope[ReportPayload[EnrollmentByLocationRow]],
)
async def enrollment_by_location_report(
    query: ReportQuery = Depends(get_report_query),
    principal: Principal = Depends(get_current_principal),
    runner: ReportRunner = Depends(get_report_runner),
) -> SuccessEnvelope:
    return await _run_report("enrollment-by-location", query, principal, runner)


@router.get(
    "/schedule-summary", response_model=SuccessEnvelope[ReportPayload[ScheduleSummaryRow]]
)
async def schedule_summary_report(
    query: ReportQuery = Depends(get_report_query),
    principal: Principal = Depends(get_current_principal),
    runner: ReportRunner = Depends(get_report_runner),
) -> SuccessEnvelope:
    return await _run_report("schedule-summary", query, principal, runner)


@router.get("/revenue-summary", response_model=SuccessEnvelope[ReportPayload[RevenueSummaryRow]])
async def revenue_summary_report(
    query: ReportQuery = Depends(get_report_query),
    principal: Principal = Depends(get_current_principal),
    runner: ReportRunner = Depends(get_report_runner),
) -> SuccessEnvelope:
    return await _run_report("revenue-summary", query, principal, runner)
