# classdesk/routes/v1/classes.py
"""
Class enrollment routes - API v1

Endpoints:
    POST /classes/{id}/enroll       → Enroll one student
    POST /classes/{id}/enroll-bulk  → Best-effort enrollment of many students
    POST /classes/{id}/reconcile-enrollment → Repair the enrollment counter (admin)
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends, status

from ...api.dependencies import get_current_principal, get_enrollment_service
from ...core.exceptions import DomainException
from ...principal import Principal
from ...schemas.base_responses import SuccessEnvelope
from ...schemas.enrollment import (
    BulkEnrollmentResponse,
    BulkEnrollRequest,
    EnrollmentRecountResponse,
    EnrollmentResponse,
    EnrollRequest,
)
from ...services.enrollment_service import EnrollmentService
from ._errors import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["classes-v1"])


@router.post(
    "/{class_id}/enroll",
    response_model=SuccessEnvelope[EnrollmentResponse],
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Class or student not found"},
        409: {"description": "Student already enrolled"},
        422: {"description": "Class is at full capacity"},
    },
)
async def enroll_student(
    class_id: str,
    payload: EnrollRequest = Body(...),
    principal: Principal = Depends(get_current_principal),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> SuccessEnvelope[EnrollmentResponse]:
    try:
        school_class = await asyncio.to_thread(
            service.enroll_student, class_id, payload.student_id, principal
        )
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(
        data=EnrollmentResponse(
            class_id=school_class.id,
            student_id=payload.student_id,
            current_enrollment=school_class.current_enrollment,
            capacity=school_class.capacity,
        ),
        message="Student enrolled successfully",
    )


@router.post("/{class_id}/enroll-bulk", response_model=SuccessEnvelope[BulkEnrollmentResponse])
async def enroll_students_bulk(
    class_id: str,
    payload: BulkEnrollRequest = Body(...),
    principal: Principal = Depends(get_current_principal),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> SuccessEnvelope[BulkEnrollmentResponse]:
    """
    Enroll many students in input order.

    Not all-or-nothing: ids that are unknown, already enrolled or arrive
    after the class fills are skipped and listed in the response.
    """
    try:
        result = await asyncio.to_thread(service.bulk_enroll, class_id, payload.student_ids, principal)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(
        data=BulkEnrollmentResponse(
            class_id=result.class_id,
            new_enrollments=result.new_enrollments,
            enrolled=result.enrolled,
            already_enrolled=result.already_enrolled,
            over_capacity=result.over_capacity,
            not_found=result.not_found,
            current_enrollment=result.current_enrollment,
            capacity=result.capacity,
        ),
        message=f"{result.new_enrollments} student(s) enrolled",
    )


@router.post(
    "/{class_id}/reconcile-enrollment",
    response_model=SuccessEnvelope[EnrollmentRecountResponse],
    responses={403: {"description": "Admin role required"}, 404: {"description": "Class not found"}},
)
async def reconcile_enrollment(
    class_id: str,
    principal: Principal = Depends(get_current_principal),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> SuccessEnvelope[EnrollmentRecountResponse]:
    """Recount the roster and overwrite ``current_enrollment`` if it drifted."""
    try:
        recount = await asyncio.to_thread(service.reconcile_enrollment_count, class_id, principal)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(
        data=EnrollmentRecountResponse(
            class_id=recount.class_id,
            stored=recount.stored,
            actual=recount.actual,
            repaired=recount.repaired,
        ),
        message="Enrollment count repaired" if recount.repaired else "Enrollment count is correct",
    )
