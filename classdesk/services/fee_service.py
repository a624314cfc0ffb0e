# classdesk/services/fee_service.py
"""
Fee Service for classdesk

Assigns fees and records payments against them. Fees are a financial
ledger: a row is created at assignment time, changed only by payments,
and never deleted.

The stored ``status`` is a cache. ``derive_fee_status`` is the single rule
for what a fee's status is; reports call it instead of trusting the column.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
import logging
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ..core.enums import EnrollmentStatus, FeeStatus, FeeStructureStatus
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    IntegrityConflictException,
    NotFoundException,
    ValidationException,
)
from ..models.fee import FeeStructure, StudentFee
from ..principal import Principal
from ..repositories import RepositoryFactory
from ..repositories.fee_repository import FeeRepository
from ..schemas.fees import FeeAssignRequest, PaymentRequest
from .base import BaseService

logger = logging.getLogger(__name__)

Amount = Union[Decimal, int, float, None]


def to_decimal(value: Amount) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def derive_fee_status(
    amount: Amount,
    paid_amount: Amount,
    due_date: Optional[date],
    today: Optional[date] = None,
) -> FeeStatus:
    """
    Status from amounts and due date.

    paid if fully paid; otherwise overdue once the due date has passed;
    otherwise partial if anything was paid; otherwise pending.
    """
    total = to_decimal(amount)
    paid = to_decimal(paid_amount)
    reference = today or date.today()

    if paid >= total:
        return FeeStatus.PAID
    if due_date is not None and due_date < reference:
        return FeeStatus.OVERDUE
    if paid > 0:
        return FeeStatus.PARTIAL
    return FeeStatus.PENDING


@dataclass
class FeeAssignmentResult:
    fee_structure_id: str
    created: List[StudentFee] = field(default_factory=list)
    already_assigned: int = 0


class FeeService(BaseService):
    """Fee assignment and payment recording on the student fee ledger."""

    def __init__(self, db: Session, repository: Optional[FeeRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_fee_repository(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.structure_repository = RepositoryFactory.create_base_repository(db, FeeStructure)

    @BaseService.measure_operation("assign_fees")
    def assign_fees(
        self,
        data: FeeAssignRequest,
        principal: Principal,
        today: Optional[date] = None,
    ) -> FeeAssignmentResult:
        """
        Create one fee per actively enrolled student of each class.

        Idempotent per (student, class, structure): pairs that already carry
        the structure are counted in ``already_assigned`` and left alone.

        Raises:
            ForbiddenException: caller is a student, or a teacher of another class
            NotFoundException: fee structure or a class absent
            ValidationException: fee structure is inactive
            ConflictException: a concurrent assignment of the same structure won
        """
        if principal.is_student:
            raise ForbiddenException("Only admins and teachers can assign fees")

        structure = self.structure_repository.get_by_id(data.fee_structure_id)
        if structure is None:
            raise NotFoundException(
                "Fee structure not found", details={"fee_structure_id": data.fee_structure_id}
            )
        if structure.status != FeeStructureStatus.ACTIVE.value:
            raise ValidationException(
                "Fee structure is not active",
                details={"fee_structure_id": structure.id, "status": structure.status},
            )

        class_ids = list(dict.fromkeys(data.class_ids))
        for class_id in class_ids:
            school_class = self.class_repository.get_by_id(class_id)
            if school_class is None:
                raise NotFoundException("Class not found", details={"class_id": class_id})
            if principal.is_teacher and school_class.teacher_id != principal.id:
                raise ForbiddenException(
                    "Teachers can only assign fees to their own classes",
                    details={"class_id": class_id},
                )

        result = FeeAssignmentResult(fee_structure_id=structure.id)
        status = derive_fee_status(structure.amount, 0, data.due_date, today)

        with self.transaction():
            assigned = self.repository.get_assigned_pairs(structure.id, class_ids)
            enrollments = self.class_repository.get_enrollments_for_classes(class_ids)
            for enrollment in enrollments:
                if enrollment.status != EnrollmentStatus.ACTIVE.value:
                    continue
                pair = (enrollment.student_id, enrollment.class_id)
                if pair in assigned:
                    result.already_assigned += 1
                    continue
                try:
                    fee = self.repository.create(
                        student_id=enrollment.student_id,
                        class_id=enrollment.class_id,
                        fee_structure_id=structure.id,
                        amount=structure.amount,
                        currency=structure.currency,
                        paid_amount=Decimal("0"),
                        due_date=data.due_date,
                        status=status.value,
                    )
                except IntegrityConflictException as exc:
                    raise ConflictException(
                        "Fees were assigned concurrently; no changes were applied",
                        details={"fee_structure_id": structure.id},
                    ) from exc
                assigned.add(pair)
                result.created.append(fee)

        self.logger.info(
            f"Assigned fee structure {structure.id} to {len(result.created)} student(s) "
            f"across {len(class_ids)} class(es); {result.already_assigned} already assigned"
        )
        return result

    @BaseService.measure_operation("record_payment")
    def record_payment(
        self,
        fee_id: str,
        payment: PaymentRequest,
        principal: Principal,
        today: Optional[date] = None,
    ) -> StudentFee:
        """
        Add a payment to a fee and refresh its cached status.

        Overpayment is accepted and logged, never clamped.

        Raises:
            ForbiddenException: caller is a student
            NotFoundException: fee does not exist
        """
        if principal.is_student:
            raise ForbiddenException("Only admins and teachers can record payments")

        with self.transaction():
            fee = self.repository.get_for_update(fee_id)
            if fee is None:
                raise NotFoundException("Fee record not found", details={"fee_id": fee_id})

            if principal.is_teacher and fee.school_class.teacher_id != principal.id:
                raise ForbiddenException(
                    "Teachers can only record payments for their own classes",
                    details={"fee_id": fee_id},
                )

            new_paid = to_decimal(fee.paid_amount) + payment.paid_amount
            if new_paid > to_decimal(fee.amount):
                self.logger.warning(
                    "Payment on fee %s exceeds the amount due: paid %s of %s",
                    fee_id,
                    new_paid,
                    fee.amount,
                )

            paid_on = (
                datetime.combine(payment.paid_date, time.min)
                if payment.paid_date
                else datetime.now()
            )
            status = derive_fee_status(fee.amount, new_paid, fee.due_date, today)
            self.repository.apply_changes(
                fee,
                paid_amount=new_paid,
                paid_date=paid_on,
                payment_method=payment.payment_method.value,
                notes=payment.notes if payment.notes is not None else fee.notes,
                recorded_by=principal.id,
                status=status.value,
            )

        self.logger.info(f"Recorded payment of {payment.paid_amount} on fee {fee_id} ({status.value})")
        return fee
