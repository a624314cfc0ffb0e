import pytest

from classdesk.core.enums import RoleName
from classdesk.core.exceptions import (
    ClassFullException,
    ConflictException,
    DuplicateEnrollmentException,
    ForbiddenException,
    NotFoundException,
)
from classdesk.models import ClassEnrollment, StudentClass
from classdesk.services.enrollment_service import (
    AlreadyEnrolled,
    CapacityExceeded,
    EnrollmentAccepted,
    EnrollmentService,
    evaluate_enrollment,
)
from tests.helpers import principal_for


class TestEvaluateEnrollment:
    def test_accepts_when_room_and_not_enrolled(self) -> None:
        assert evaluate_enrollment({"s1"}, 1, 2, "s2") == EnrollmentAccepted()

    def test_already_enrolled_wins_over_capacity(self) -> None:
        assert evaluate_enrollment({"s1", "s2"}, 2, 2, "s1") == AlreadyEnrolled("s1")

    def test_capacity_exceeded_when_full(self) -> None:
        decision = evaluate_enrollment({"s1", "s2"}, 2, 2, "s3")
        assert decision == CapacityExceeded(capacity=2, current_enrollment=2)


@pytest.fixture
def small_class(campus, make_class):
    return make_class(campus["location"], campus["teacher"], title="Physics Revision", capacity=2)


class TestBulkEnroll:
    def test_capacity_two_with_one_enrolled_admits_exactly_one(
        self, db, campus, small_class, make_user, enroll
    ) -> None:
        s1, s2, s3 = (make_user() for _ in range(3))
        enroll(small_class, s1)

        service = EnrollmentService(db)
        result = service.bulk_enroll(
            small_class.id, [s1.id, s2.id, s3.id], principal_for(campus["admin"])
        )

        assert result.new_enrollments == 1
        assert result.enrolled == [s2.id]
        assert result.already_enrolled == [s1.id]
        assert result.over_capacity == [s3.id]
        assert result.current_enrollment == 2

        db.refresh(small_class)
        assert small_class.current_enrollment == 2
        roster = {e.student_id for e in db.query(ClassEnrollment).filter_by(class_id=small_class.id)}
        assert roster == {s1.id, s2.id}

    def test_repeats_within_request_count_once(self, db, campus, small_class, make_user) -> None:
        s1 = make_user()
        result = EnrollmentService(db).bulk_enroll(
            small_class.id, [s1.id, s1.id], principal_for(campus["admin"])
        )
        assert result.enrolled == [s1.id]
        assert result.already_enrolled == [s1.id]

    def test_unknown_and_non_student_ids_are_skipped(
        self, db, campus, small_class, make_user
    ) -> None:
        s1 = make_user()
        result = EnrollmentService(db).bulk_enroll(
            small_class.id,
            ["missing", campus["teacher"].id, s1.id],
            principal_for(campus["admin"]),
        )
        assert result.not_found == ["missing", campus["teacher"].id]
        assert result.enrolled == [s1.id]

    def test_other_teacher_is_forbidden(self, db, small_class, make_user) -> None:
        other = make_user(RoleName.TEACHER.value)
        with pytest.raises(ForbiddenException):
            EnrollmentService(db).bulk_enroll(small_class.id, ["x"], principal_for(other))


class TestEnrollStudent:
    def test_enrolls_and_updates_both_sides(self, db, campus, small_class, make_user) -> None:
        student = make_user()
        school_class = EnrollmentService(db).enroll_student(
            small_class.id, student.id, principal_for(campus["teacher"])
        )
        assert school_class.current_enrollment == 1
        assert db.query(StudentClass).filter_by(student_id=student.id).count() == 1

    def test_duplicate_is_rejected(self, db, campus, small_class, make_user, enroll) -> None:
        student = make_user()
        enroll(small_class, student)
        with pytest.raises(DuplicateEnrollmentException) as exc_info:
            EnrollmentService(db).enroll_student(
                small_class.id, student.id, principal_for(campus["admin"])
            )
        assert exc_info.value.code == "ALREADY_ENROLLED"

    def test_full_class_is_rejected(self, db, campus, small_class, make_user, enroll) -> None:
        enroll(small_class, make_user())
        enroll(small_class, make_user())
        latecomer = make_user()
        with pytest.raises(ClassFullException):
            EnrollmentService(db).enroll_student(
                small_class.id, latecomer.id, principal_for(campus["admin"])
            )
        db.refresh(small_class)
        assert small_class.current_enrollment == 2

    def test_missing_class(self, db, campus, make_user) -> None:
        with pytest.raises(NotFoundException):
            EnrollmentService(db).enroll_student(
                "01HZZZZZZZZZZZZZZZZZZZZZZZ", make_user().id, principal_for(campus["admin"])
            )

    def test_missing_student(self, db, campus, small_class) -> None:
        with pytest.raises(NotFoundException):
            EnrollmentService(db).enroll_student(
                small_class.id, "nobody", principal_for(campus["admin"])
            )


class TestStaleRosterRead:
    """The roster read ran before another writer committed the same student."""

    @pytest.fixture
    def stale_service(self, db, monkeypatch) -> EnrollmentService:
        service = EnrollmentService(db)
        monkeypatch.setattr(service.class_repository, "get_enrolled_student_ids", lambda class_id: [])
        return service

    def test_single_enroll_reports_conflict(
        self, db, campus, small_class, make_user, enroll, stale_service
    ) -> None:
        student = make_user()
        enroll(small_class, student)

        with pytest.raises(ConflictException) as exc_info:
            stale_service.enroll_student(small_class.id, student.id, principal_for(campus["admin"]))

        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {"class_id": small_class.id, "student_id": student.id}
        db.refresh(small_class)
        assert small_class.current_enrollment == 1
        assert db.query(ClassEnrollment).filter_by(class_id=small_class.id).count() == 1

    def test_bulk_enroll_rolls_back_whole_call(
        self, db, campus, make_user, enroll, stale_service
    ) -> None:
        school_class = campus["class"]
        enrolled, newcomer = make_user(), make_user()
        enroll(school_class, enrolled)

        with pytest.raises(ConflictException):
            stale_service.bulk_enroll(
                school_class.id, [newcomer.id, enrolled.id], principal_for(campus["admin"])
            )

        db.refresh(school_class)
        assert school_class.current_enrollment == 1
        roster = {e.student_id for e in db.query(ClassEnrollment).filter_by(class_id=school_class.id)}
        assert roster == {enrolled.id}
        assert db.query(StudentClass).filter_by(student_id=newcomer.id).count() == 0


def test_reconcile_repairs_counter_drift(db, campus, small_class, make_user, enroll) -> None:
    enroll(small_class, make_user())
    small_class.current_enrollment = 0
    db.commit()

    recount = EnrollmentService(db).reconcile_enrollment_count(
        small_class.id, principal_for(campus["admin"])
    )

    assert (recount.stored, recount.actual, recount.repaired) == (0, 1, True)
    db.refresh(small_class)
    assert small_class.current_enrollment == 1


def test_reconcile_is_admin_only(db, campus, small_class) -> None:
    with pytest.raises(ForbiddenException):
        EnrollmentService(db).reconcile_enrollment_count(
            small_class.id, principal_for(campus["teacher"])
        )
