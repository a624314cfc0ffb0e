import pytest

from classdesk.core.enums import RoleName
from classdesk.core.exceptions import IntegrityConflictException
from classdesk.repositories import RepositoryFactory


@pytest.fixture
def classes(campus, make_location, make_user, make_class):
    kandy = make_location("Kandy Hill")
    other_teacher = make_user(RoleName.TEACHER.value)
    return {
        "maths": campus["class"],
        "physics": make_class(campus["location"], campus["teacher"], title="A/L Physics", subject="Physics"),
        "english": make_class(kandy, other_teacher, title="Spoken English", subject="English"),
        "kandy": kandy,
        "other_teacher": other_teacher,
    }


def test_list_for_scope_unfiltered_is_ordered_by_title(db, classes) -> None:
    repo = RepositoryFactory.create_class_repository(db)
    titles = [c.title for c in repo.list_for_scope()]
    assert titles == ["A/L Physics", "Grade 10 Mathematics", "Spoken English"]


def test_list_for_scope_by_teacher(db, campus, classes) -> None:
    repo = RepositoryFactory.create_class_repository(db)
    result = repo.list_for_scope(teacher_id=campus["teacher"].id)
    assert {c.id for c in result} == {classes["maths"].id, classes["physics"].id}


def test_list_for_scope_by_location_and_subject(db, classes) -> None:
    repo = RepositoryFactory.create_class_repository(db)
    assert [c.id for c in repo.list_for_scope(location_id=classes["kandy"].id)] == [classes["english"].id]
    assert [c.id for c in repo.list_for_scope(subject="Physics")] == [classes["physics"].id]


def test_search_is_case_insensitive_on_title_or_subject(db, classes) -> None:
    repo = RepositoryFactory.create_class_repository(db)
    assert [c.id for c in repo.list_for_scope(search="MATH")] == [classes["maths"].id]
    assert [c.id for c in repo.list_for_scope(search="english")] == [classes["english"].id]


def test_add_enrollment_twice_violates_unique_roster(db, campus, make_user) -> None:
    student = make_user()
    repo = RepositoryFactory.create_class_repository(db)
    school_class = repo.get_for_update(campus["class"].id)

    repo.add_enrollment(school_class, student.id)
    db.commit()

    with pytest.raises(IntegrityConflictException):
        repo.add_enrollment(school_class, student.id)

    db.refresh(school_class)
    assert school_class.current_enrollment == 1
    assert repo.count_enrollments(school_class.id) == 1
