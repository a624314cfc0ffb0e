# classdesk/routes/v1/attendance.py
"""
Attendance routes - API v1

Marking is an upsert: posting the same (student, class, date) twice
updates the one record.

Endpoints:
    POST /attendance                  → Mark (or re-mark) one record
    GET  /attendance                  → Records for a class on a date
    GET  /attendance/student-summary  → The calling student's totals
    GET  /attendance/class-summary    → Per-class counts in the caller's scope
"""

import asyncio
import datetime as dt
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from ...api.dependencies import get_attendance_service, get_current_principal
from ...core.exceptions import DomainException
from ...principal import Principal
from ...schemas.attendance import (
    AttendanceMark,
    AttendanceResponse,
    ClassAttendanceSummary,
    StudentAttendanceSummary,
)
from ...schemas.base_responses import SuccessEnvelope
from ...services.attendance_service import AttendanceService
from ...services.scope import ReportFilters
from ...services.time_window import resolve_time_window
from ._errors import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["attendance-v1"])


@router.post("", response_model=SuccessEnvelope[AttendanceResponse])
async def mark_attendance(
    payload: AttendanceMark = Body(...),
    principal: Principal = Depends(get_current_principal),
    service: AttendanceService = Depends(get_attendance_service),
) -> SuccessEnvelope[AttendanceResponse]:
    try:
        record = await asyncio.to_thread(service.mark_attendance, payload, principal)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(data=AttendanceResponse.from_model(record), message="Attendance marked")


@router.get("/student-summary", response_model=SuccessEnvelope[StudentAttendanceSummary])
async def student_summary(
    from_date: Optional[str] = Query(None, alias="from"),
    to_date: Optional[str] = Query(None, alias="to"),
    range_token: Optional[str] = Query(None, alias="range"),
    principal: Principal = Depends(get_current_principal),
    service: AttendanceService = Depends(get_attendance_service),
) -> SuccessEnvelope[StudentAttendanceSummary]:
    """The calling student's own attendance totals."""
    try:
        window = resolve_time_window(from_date, to_date, range_token)
        summary = await asyncio.to_thread(service.student_summary, principal, window)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(data=summary)


@router.get("/class-summary", response_model=SuccessEnvelope[List[ClassAttendanceSummary]])
async def class_summary(
    class_id: Optional[str] = Query(None, alias="classId"),
    location_id: Optional[str] = Query(None, alias="locationId"),
    from_date: Optional[str] = Query(None, alias="from"),
    to_date: Optional[str] = Query(None, alias="to"),
    range_token: Optional[str] = Query(None, alias="range"),
    principal: Principal = Depends(get_current_principal),
    service: AttendanceService = Depends(get_attendance_service),
) -> SuccessEnvelope[List[ClassAttendanceSummary]]:
    """Present, absent and late counts per class. Teachers see their own classes."""
    try:
        window = resolve_time_window(from_date, to_date, range_token)
        filters = ReportFilters.from_query(class_id=class_id, location_id=location_id)
        summaries = await asyncio.to_thread(service.class_summary, principal, window, filters)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(data=summaries)


@router.get("", response_model=SuccessEnvelope[List[AttendanceResponse]])
async def list_attendance(
    class_id: str = Query(..., alias="classId", min_length=1),
    on_date: dt.date = Query(..., alias="date"),
    principal: Principal = Depends(get_current_principal),
    service: AttendanceService = Depends(get_attendance_service),
) -> SuccessEnvelope[List[AttendanceResponse]]:
    try:
        records = await asyncio.to_thread(service.list_for_class, class_id, on_date, principal)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(data=[AttendanceResponse.from_model(r) for r in records])
