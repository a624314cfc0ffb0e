from datetime import date, time

import pytest

from classdesk.core.exceptions import IntegrityConflictException
from classdesk.repositories import RepositoryFactory

DAY = date(2024, 1, 10)


def test_conflict_check_ignores_inactive_and_excluded(db, campus, make_session) -> None:
    school_class = campus["class"]
    active = make_session(school_class, DAY, time(9, 0), time(10, 0))
    make_session(school_class, DAY, time(11, 0), time(12, 0), status="cancelled")
    make_session(school_class, DAY, time(13, 0), time(14, 0), status="completed")
    later = make_session(school_class, DAY, time(15, 0), time(16, 0))

    repo = RepositoryFactory.create_conflict_checker_repository(db)
    sessions = repo.get_sessions_for_conflict_check(school_class.id, school_class.location_id, DAY)
    assert [s.id for s in sessions] == [active.id, later.id]

    sessions = repo.get_sessions_for_conflict_check(
        school_class.id, school_class.location_id, DAY, exclude_session_id=active.id
    )
    assert [s.id for s in sessions] == [later.id]


def test_same_slot_twice_hits_unique_index(db, campus, make_session) -> None:
    school_class = campus["class"]
    make_session(school_class, DAY, time(9, 0), time(10, 0))

    repo = RepositoryFactory.create_schedule_repository(db)
    with pytest.raises(IntegrityConflictException):
        repo.create(
            class_id=school_class.id,
            teacher_id=school_class.teacher_id,
            location_id=school_class.location_id,
            date=DAY,
            start_time=time(9, 0),
            end_time=time(10, 0),
            duration=60,
        )


def test_cancelled_slot_can_be_rebooked(db, campus, make_session) -> None:
    school_class = campus["class"]
    make_session(school_class, DAY, time(9, 0), time(10, 0), status="cancelled")

    repo = RepositoryFactory.create_schedule_repository(db)
    session = repo.create(
        class_id=school_class.id,
        teacher_id=school_class.teacher_id,
        location_id=school_class.location_id,
        date=DAY,
        start_time=time(9, 0),
        end_time=time(10, 0),
        duration=60,
    )
    db.commit()
    assert session.status == "scheduled"


def test_list_sessions_filters(db, campus, make_session) -> None:
    school_class = campus["class"]
    make_session(school_class, date(2024, 1, 11), time(9, 0), time(10, 0))
    first = make_session(school_class, DAY, time(9, 0), time(10, 0), status="completed")

    repo = RepositoryFactory.create_schedule_repository(db)
    assert [s.date for s in repo.list_sessions(class_id=school_class.id)] == [DAY, date(2024, 1, 11)]
    assert [s.id for s in repo.list_sessions(status="completed")] == [first.id]
    assert repo.list_sessions(teacher_id="nobody") == []
