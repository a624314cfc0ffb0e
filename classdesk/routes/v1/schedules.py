# classdesk/routes/v1/schedules.py
"""
Class session scheduling routes - API v1

Endpoints:
    GET  /schedules                 → List sessions (teachers see their own)
    GET  /schedules/{id}            → Get one session
    POST /schedules                 → Book a session (conflict checked)
    PUT  /schedules/{id}            → Edit a session (admin, conflict checked)
    POST /schedules/{id}/complete   → scheduled → completed
    POST /schedules/{id}/cancel     → scheduled → cancelled
"""

import asyncio
import datetime as dt
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ...api.dependencies import get_current_principal, get_scheduling_service
from ...core.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from ...core.enums import SessionStatus
from ...core.exceptions import DomainException
from ...principal import Principal
from ...schemas.base_responses import ErrorEnvelope, SuccessEnvelope
from ...schemas.scheduling import ScheduleCancel, ScheduleCreate, ScheduleResponse, ScheduleUpdate
from ...services.scheduling_service import SchedulingService
from ._errors import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["schedules-v1"])


@router.get("", response_model=SuccessEnvelope[List[ScheduleResponse]])
async def list_schedules(
    class_id: Optional[str] = Query(None, alias="classId"),
    teacher_id: Optional[str] = Query(None, alias="teacherId"),
    on_date: Optional[dt.date] = Query(None, alias="date"),
    session_status: Optional[SessionStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    principal: Principal = Depends(get_current_principal),
    service: SchedulingService = Depends(get_scheduling_service),
) -> SuccessEnvelope[List[ScheduleResponse]]:
    """List sessions by date and start time. Teachers only ever see their own."""
    try:
        sessions = await asyncio.to_thread(
            service.list_sessions,
            principal,
            class_id=class_id,
            teacher_id=teacher_id,
            on_date=on_date,
            status=session_status.value if session_status else None,
            skip=skip,
            limit=limit,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(data=[ScheduleResponse.from_model(s) for s in sessions])


@router.get("/{session_id}", response_model=SuccessEnvelope[ScheduleResponse])
async def get_schedule(
    session_id: str,
    principal: Principal = Depends(get_current_principal),
    service: SchedulingService = Depends(get_scheduling_service),
) -> SuccessEnvelope[ScheduleResponse]:
    try:
        session = await asyncio.to_thread(service.get_session, session_id)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(data=ScheduleResponse.from_model(session))


@router.post(
    "",
    response_model=SuccessEnvelope[ScheduleResponse],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorEnvelope, "description": "Invalid time range or duration"},
        404: {"model": ErrorEnvelope, "description": "Class, location or teacher not found"},
        409: {"model": ErrorEnvelope, "description": "Overlaps an existing scheduled session"},
    },
)
async def create_schedule(
    payload: ScheduleCreate = Body(...),
    principal: Principal = Depends(get_current_principal),
    service: SchedulingService = Depends(get_scheduling_service),
) -> SuccessEnvelope[ScheduleResponse]:
    """
    Book a class session.

    The new slot must not overlap any scheduled session of the same class at
    the same location on the same date. Sessions that only touch
    (one ends exactly when the other starts) do not overlap.
    """
    try:
        session = await asyncio.to_thread(service.schedule_session, payload, principal)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(
        data=ScheduleResponse.from_model(session), message="Class scheduled successfully"
    )


@router.put("/{session_id}", response_model=SuccessEnvelope[ScheduleResponse])
async def update_schedule(
    session_id: str,
    payload: ScheduleUpdate = Body(...),
    principal: Principal = Depends(get_current_principal),
    service: SchedulingService = Depends(get_scheduling_service),
) -> SuccessEnvelope[ScheduleResponse]:
    try:
        session = await asyncio.to_thread(service.update_session, session_id, payload, principal)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(
        data=ScheduleResponse.from_model(session), message="Scheduled class updated"
    )


@router.post("/{session_id}/complete", response_model=SuccessEnvelope[ScheduleResponse])
async def complete_schedule(
    session_id: str,
    principal: Principal = Depends(get_current_principal),
    service: SchedulingService = Depends(get_scheduling_service),
) -> SuccessEnvelope[ScheduleResponse]:
    try:
        session = await asyncio.to_thread(service.complete_session, session_id, principal)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(data=ScheduleResponse.from_model(session), message="Session completed")


@router.post("/{session_id}/cancel", response_model=SuccessEnvelope[ScheduleResponse])
async def cancel_schedule(
    session_id: str,
    payload: Optional[ScheduleCancel] = Body(None),
    principal: Principal = Depends(get_current_principal),
    service: SchedulingService = Depends(get_scheduling_service),
) -> SuccessEnvelope[ScheduleResponse]:
    note = payload.note if payload else None
    try:
        session = await asyncio.to_thread(service.cancel_session, session_id, principal, note)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(data=ScheduleResponse.from_model(session), message="Session cancelled")
