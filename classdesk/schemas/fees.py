"""Fee payment schemas."""

import datetime as dt
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import Field

from ..core.enums import FeeStatus, PaymentMethod
from ._strict_base import Money, StrictModel, StrictRequestModel


class PaymentRequest(StrictRequestModel):
    """Records one payment against a student fee. ``paid_amount`` is added, not set."""

    paid_amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    payment_method: PaymentMethod
    paid_date: Optional[dt.date] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class StudentFeeResponse(StrictModel):
    id: str
    student_id: str
    class_id: str
    amount: Money
    paid_amount: Money
    pending_amount: Money
    currency: str
    due_date: dt.date
    status: FeeStatus
    paid_date: Optional[dt.datetime] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_model(cls, fee: Any) -> "StudentFeeResponse":
        amount = Decimal(fee.amount or 0)
        paid = Decimal(fee.paid_amount or 0)
        return cls(
            id=fee.id,
            student_id=fee.student_id,
            class_id=fee.class_id,
            amount=amount,
            paid_amount=paid,
            pending_amount=amount - paid,
            currency=fee.currency,
            due_date=fee.due_date,
            status=FeeStatus(fee.status),
            paid_date=fee.paid_date,
            payment_method=fee.payment_method,
            notes=fee.notes,
        )


class FeeAssignRequest(StrictRequestModel):
    """Assign one fee structure to every actively enrolled student of the given classes."""

    fee_structure_id: str = Field(min_length=1)
    class_ids: List[str] = Field(min_length=1, max_length=100)
    due_date: dt.date


class FeeAssignmentResponse(StrictModel):
    fee_structure_id: str
    created_count: int
    already_assigned: int
    fees: List[StudentFeeResponse] = Field(default_factory=list)
