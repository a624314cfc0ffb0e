from datetime import date
from decimal import Decimal

import pytest

from classdesk.core.enums import FeeStatus, PaymentMethod, RoleName
from classdesk.core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from classdesk.models import StudentFee
from classdesk.schemas.fees import FeeAssignRequest, PaymentRequest
from classdesk.services.fee_service import FeeService, derive_fee_status
from tests.helpers import principal_for

TODAY = date(2024, 3, 20)


class TestDeriveFeeStatus:
    def test_paid_in_full(self) -> None:
        assert derive_fee_status(Decimal("100"), Decimal("100"), date(2024, 1, 1), TODAY) == FeeStatus.PAID

    def test_overpaid_is_paid(self) -> None:
        assert derive_fee_status(100, 150, None, TODAY) == FeeStatus.PAID

    def test_overdue_beats_partial(self) -> None:
        assert derive_fee_status(100, 40, date(2024, 3, 19), TODAY) == FeeStatus.OVERDUE

    def test_due_today_is_not_overdue(self) -> None:
        assert derive_fee_status(100, 40, TODAY, TODAY) == FeeStatus.PARTIAL

    def test_nothing_paid_is_pending(self) -> None:
        assert derive_fee_status(100, 0, date(2024, 4, 1), TODAY) == FeeStatus.PENDING

    def test_none_amounts_treated_as_zero(self) -> None:
        assert derive_fee_status(None, None, None, TODAY) == FeeStatus.PAID


class TestRecordPayment:
    def test_payment_is_added_and_status_refreshed(self, db, campus, make_user, make_fee) -> None:
        fee = make_fee(campus["class"], make_user(), amount="5000.00", paid="1000.00", due_date=date(2024, 4, 30))

        updated = FeeService(db).record_payment(
            fee.id,
            PaymentRequest(paid_amount=Decimal("1500.00"), payment_method=PaymentMethod.CASH),
            principal_for(campus["admin"]),
            today=TODAY,
        )

        assert updated.paid_amount == Decimal("2500.00")
        assert updated.status == FeeStatus.PARTIAL.value
        assert updated.payment_method == "cash"
        assert updated.recorded_by == campus["admin"].id

    def test_settling_balance_marks_paid(self, db, campus, make_user, make_fee) -> None:
        fee = make_fee(campus["class"], make_user(), amount="2000.00", due_date=date(2024, 3, 1))
        updated = FeeService(db).record_payment(
            fee.id,
            PaymentRequest(paid_amount=Decimal("2000.00"), payment_method=PaymentMethod.BANK_TRANSFER),
            principal_for(campus["teacher"]),
            today=TODAY,
        )
        assert updated.status == FeeStatus.PAID.value

    def test_student_cannot_record(self, db, campus, make_user, make_fee) -> None:
        student = make_user()
        fee = make_fee(campus["class"], student)
        with pytest.raises(ForbiddenException):
            FeeService(db).record_payment(
                fee.id,
                PaymentRequest(paid_amount=Decimal("1"), payment_method=PaymentMethod.CASH),
                principal_for(student),
            )

    def test_other_teacher_cannot_record(self, db, campus, make_user, make_fee) -> None:
        fee = make_fee(campus["class"], make_user())
        stranger = make_user(RoleName.TEACHER.value)
        with pytest.raises(ForbiddenException):
            FeeService(db).record_payment(
                fee.id,
                PaymentRequest(paid_amount=Decimal("1"), payment_method=PaymentMethod.CASH),
                principal_for(stranger),
            )

    def test_missing_fee(self, db, campus) -> None:
        with pytest.raises(NotFoundException):
            FeeService(db).record_payment(
                "missing",
                PaymentRequest(paid_amount=Decimal("1"), payment_method=PaymentMethod.CASH),
                principal_for(campus["admin"]),
            )


class TestAssignFees:
    @pytest.fixture
    def structure(self, make_fee_structure):
        return make_fee_structure(amount="4500.00")

    @staticmethod
    def _request(structure, *class_ids: str, due_date: date = date(2024, 4, 30)) -> FeeAssignRequest:
        return FeeAssignRequest(
            fee_structure_id=structure.id, class_ids=list(class_ids), due_date=due_date
        )

    def test_one_fee_per_active_enrollment(self, db, campus, structure, make_user, enroll) -> None:
        school_class = campus["class"]
        first, second, finished = make_user(), make_user(), make_user()
        enroll(school_class, first)
        enroll(school_class, second)
        enroll(school_class, finished, status="completed")

        result = FeeService(db).assign_fees(
            self._request(structure, school_class.id), principal_for(campus["admin"]), today=TODAY
        )

        assert {fee.student_id for fee in result.created} == {first.id, second.id}
        assert result.already_assigned == 0
        fee = result.created[0]
        assert fee.amount == Decimal("4500.00")
        assert fee.paid_amount == Decimal("0")
        assert fee.fee_structure_id == structure.id
        assert fee.status == FeeStatus.PENDING.value

    def test_past_due_date_starts_overdue(self, db, campus, structure, make_user, enroll) -> None:
        enroll(campus["class"], make_user())
        result = FeeService(db).assign_fees(
            self._request(structure, campus["class"].id, due_date=date(2024, 3, 1)),
            principal_for(campus["admin"]),
            today=TODAY,
        )
        assert result.created[0].status == FeeStatus.OVERDUE.value

    def test_second_run_creates_nothing(self, db, campus, structure, make_user, enroll) -> None:
        enroll(campus["class"], make_user())
        enroll(campus["class"], make_user())
        service = FeeService(db)
        request = self._request(structure, campus["class"].id, campus["class"].id)

        service.assign_fees(request, principal_for(campus["admin"]), today=TODAY)
        again = service.assign_fees(request, principal_for(campus["teacher"]), today=TODAY)

        assert again.created == []
        assert again.already_assigned == 2
        assert db.query(StudentFee).filter_by(fee_structure_id=structure.id).count() == 2

    def test_newly_enrolled_student_is_picked_up(
        self, db, campus, structure, make_user, enroll
    ) -> None:
        enroll(campus["class"], make_user())
        service = FeeService(db)
        request = self._request(structure, campus["class"].id)
        service.assign_fees(request, principal_for(campus["admin"]), today=TODAY)

        latecomer = make_user()
        enroll(campus["class"], latecomer)
        result = service.assign_fees(request, principal_for(campus["admin"]), today=TODAY)

        assert [fee.student_id for fee in result.created] == [latecomer.id]
        assert result.already_assigned == 1

    def test_inactive_structure_is_rejected(self, db, campus, make_fee_structure) -> None:
        retired = make_fee_structure(status="inactive")
        with pytest.raises(ValidationException):
            FeeService(db).assign_fees(
                self._request(retired, campus["class"].id), principal_for(campus["admin"])
            )

    def test_missing_structure(self, db, campus) -> None:
        request = FeeAssignRequest(
            fee_structure_id="missing", class_ids=[campus["class"].id], due_date=date(2024, 4, 30)
        )
        with pytest.raises(NotFoundException):
            FeeService(db).assign_fees(request, principal_for(campus["admin"]))

    def test_missing_class_creates_nothing(
        self, db, campus, structure, make_user, enroll
    ) -> None:
        enroll(campus["class"], make_user())
        with pytest.raises(NotFoundException):
            FeeService(db).assign_fees(
                self._request(structure, campus["class"].id, "missing"),
                principal_for(campus["admin"]),
            )
        assert db.query(StudentFee).count() == 0

    def test_teacher_of_another_class_is_forbidden(
        self, db, campus, structure, make_class, make_user
    ) -> None:
        other_teacher = make_user(RoleName.TEACHER.value)
        other_class = make_class(campus["location"], other_teacher, title="Chemistry")
        with pytest.raises(ForbiddenException):
            FeeService(db).assign_fees(
                self._request(structure, campus["class"].id, other_class.id),
                principal_for(other_teacher),
            )

    def test_student_is_forbidden(self, db, campus, structure, make_user) -> None:
        with pytest.raises(ForbiddenException):
            FeeService(db).assign_fees(
                self._request(structure, campus["class"].id), principal_for(make_user())
            )

    def test_concurrent_assignment_is_conflict(
        self, db, campus, structure, make_user, enroll, monkeypatch
    ) -> None:
        enroll(campus["class"], make_user())
        service = FeeService(db)
        request = self._request(structure, campus["class"].id)
        service.assign_fees(request, principal_for(campus["admin"]), today=TODAY)

        monkeypatch.setattr(
            service.repository, "get_assigned_pairs", lambda fee_structure_id, class_ids: set()
        )
        with pytest.raises(ConflictException):
            service.assign_fees(request, principal_for(campus["admin"]), today=TODAY)
        assert db.query(StudentFee).filter_by(fee_structure_id=structure.id).count() == 1
