from datetime import date

from classdesk.models import Attendance
from classdesk.repositories import RepositoryFactory


def test_marking_twice_leaves_one_updated_row(db, campus, make_user) -> None:
    student = make_user()
    repo = RepositoryFactory.create_attendance_repository(db)
    kwargs = dict(student_id=student.id, class_id=campus["class"].id, on_date=date(2024, 3, 4))

    first = repo.upsert(status="absent", marked_by=campus["teacher"].id, **kwargs)
    db.commit()
    second = repo.upsert(status="late", notes="bus delay", marked_by=campus["admin"].id, **kwargs)
    db.commit()

    rows = db.query(Attendance).filter_by(student_id=student.id).all()
    assert len(rows) == 1
    assert first.id == second.id
    assert rows[0].status == "late"
    assert rows[0].notes == "bus delay"
    assert rows[0].marked_by == campus["admin"].id


def test_different_dates_are_separate_rows(db, campus, make_user) -> None:
    student = make_user()
    repo = RepositoryFactory.create_attendance_repository(db)
    for day in (4, 5):
        repo.upsert(
            student_id=student.id,
            class_id=campus["class"].id,
            on_date=date(2024, 3, day),
            status="present",
        )
    db.commit()
    assert db.query(Attendance).count() == 2


def test_get_for_classes_respects_window_and_class_set(db, campus, make_class, make_user, mark) -> None:
    other = make_class(campus["location"], campus["teacher"], title="Biology")
    student = make_user()
    mark(campus["class"], student, date(2024, 2, 28))
    mark(campus["class"], student, date(2024, 3, 1))
    mark(other, student, date(2024, 3, 2))

    repo = RepositoryFactory.create_attendance_repository(db)
    records = repo.get_for_classes([campus["class"].id], date(2024, 3, 1), date(2024, 3, 31))

    assert [(r.class_id, r.date) for r in records] == [(campus["class"].id, date(2024, 3, 1))]
    assert repo.get_for_classes([], None, None) == []


def test_count_by_status_for_student(db, campus, make_user, mark) -> None:
    student = make_user()
    mark(campus["class"], student, date(2024, 3, 1), "present")
    mark(campus["class"], student, date(2024, 3, 2), "present")
    mark(campus["class"], student, date(2024, 3, 3), "absent")

    repo = RepositoryFactory.create_attendance_repository(db)
    counts = repo.count_by_status_for_student(student.id, None, None)
    assert counts == {"present": 2, "absent": 1}
