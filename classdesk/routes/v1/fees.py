# classdesk/routes/v1/fees.py
"""
Student fee routes - API v1

Endpoints:
    POST  /fees/assign               → Assign a fee structure to enrolled students
    PATCH /fees/student/{id}/pay     → Record a payment
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends, status

from ...api.dependencies import get_current_principal, get_fee_service
from ...core.exceptions import DomainException
from ...principal import Principal
from ...schemas.base_responses import SuccessEnvelope
from ...schemas.fees import (
    FeeAssignmentResponse,
    FeeAssignRequest,
    PaymentRequest,
    StudentFeeResponse,
)
from ...services.fee_service import FeeService
from ._errors import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["fees-v1"])


@router.post(
    "/assign",
    response_model=SuccessEnvelope[FeeAssignmentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def assign_fees(
    payload: FeeAssignRequest = Body(...),
    principal: Principal = Depends(get_current_principal),
    service: FeeService = Depends(get_fee_service),
) -> SuccessEnvelope[FeeAssignmentResponse]:
    """
    Create a fee for every actively enrolled student of the given classes.

    Re-running the same assignment creates nothing new.
    """
    try:
        result = await asyncio.to_thread(service.assign_fees, payload, principal)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(
        data=FeeAssignmentResponse(
            fee_structure_id=result.fee_structure_id,
            created_count=len(result.created),
            already_assigned=result.already_assigned,
            fees=[StudentFeeResponse.from_model(fee) for fee in result.created],
        ),
        message=f"{len(result.created)} fee(s) assigned",
    )


@router.patch("/student/{fee_id}/pay", response_model=SuccessEnvelope[StudentFeeResponse])
async def record_payment(
    fee_id: str,
    payload: PaymentRequest = Body(...),
    principal: Principal = Depends(get_current_principal),
    service: FeeService = Depends(get_fee_service),
) -> SuccessEnvelope[StudentFeeResponse]:
    """Add a payment to a student fee. The amount is added to what was already paid."""
    try:
        fee = await asyncio.to_thread(service.record_payment, fee_id, payload, principal)
    except DomainException as e:
        handle_domain_exception(e)
    return SuccessEnvelope(data=StudentFeeResponse.from_model(fee), message="Payment recorded")
