# tests/conftest.py
"""
Shared fixtures.

Every test gets a fresh in-memory SQLite database. The engine uses a
StaticPool so the route tests, which run services in worker threads, see
the same connection as the test body.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, Generator, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from classdesk.api.dependencies.database import get_db, get_session_factory
from classdesk.core.enums import RoleName, SessionStatus
from classdesk.database import Base
from classdesk.main import app
import classdesk.models  # noqa: F401
from classdesk.models import (
    Attendance,
    ClassEnrollment,
    FeeStructure,
    Location,
    ScheduledClass,
    SchoolClass,
    StudentClass,
    StudentFee,
    User,
)

# ============================================================================
# DATABASE
# ============================================================================


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(test_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db: Session, engine: Engine) -> Generator[TestClient, None, None]:
    """
    TestClient whose requests share the test session.

    Work that opens its own session (reports) gets one on the test engine.
    """
    worker_sessions = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    def override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: worker_sessions
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_session_factory, None)

# ============================================================================
# SEED HELPERS
# ============================================================================


@pytest.fixture
def make_location(db: Session) -> Callable[..., Location]:
    def _make(name: str = "Colombo Central", **kwargs: Any) -> Location:
        location = Location(name=name, **kwargs)
        db.add(location)
        db.commit()
        return location

    return _make


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(role: str = RoleName.STUDENT.value, first_name: Optional[str] = None, **kwargs: Any) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            first_name=first_name or f"{role.title()}{n}",
            last_name=kwargs.pop("last_name", "Perera"),
            email=kwargs.pop("email", f"{role}{n}@example.com"),
            role=role,
            **kwargs,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_class(db: Session) -> Callable[..., SchoolClass]:
    def _make(
        location: Location,
        teacher: User,
        title: str = "Grade 10 Mathematics",
        subject: str = "Mathematics",
        capacity: int = 20,
        **kwargs: Any,
    ) -> SchoolClass:
        school_class = SchoolClass(
            title=title,
            subject=subject,
            location_id=location.id,
            teacher_id=teacher.id,
            capacity=capacity,
            **kwargs,
        )
        db.add(school_class)
        db.commit()
        return school_class

    return _make


@pytest.fixture
def make_session(db: Session) -> Callable[..., ScheduledClass]:
    def _make(
        school_class: SchoolClass,
        on_date: date,
        start: time,
        end: time,
        status: str = SessionStatus.SCHEDULED.value,
    ) -> ScheduledClass:
        duration = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
        session = ScheduledClass(
            class_id=school_class.id,
            teacher_id=school_class.teacher_id,
            location_id=school_class.location_id,
            date=on_date,
            start_time=start,
            end_time=end,
            duration=duration,
            status=status,
        )
        db.add(session)
        db.commit()
        return session

    return _make


@pytest.fixture
def enroll(db: Session) -> Callable[..., ClassEnrollment]:
    """Seed a roster row and keep the class counter in step."""

    def _enroll(school_class: SchoolClass, student: User, status: str = "active") -> ClassEnrollment:
        enrollment = ClassEnrollment(class_id=school_class.id, student_id=student.id, status=status)
        db.add(enrollment)
        db.add(StudentClass(class_id=school_class.id, student_id=student.id))
        school_class.current_enrollment = (school_class.current_enrollment or 0) + 1
        db.commit()
        return enrollment

    return _enroll


@pytest.fixture
def mark(db: Session) -> Callable[..., Attendance]:
    def _mark(school_class: SchoolClass, student: User, on_date: date, status: str = "present") -> Attendance:
        record = Attendance(
            class_id=school_class.id, student_id=student.id, date=on_date, status=status
        )
        db.add(record)
        db.commit()
        return record

    return _mark


@pytest.fixture
def make_fee(db: Session) -> Callable[..., StudentFee]:
    def _make(
        school_class: SchoolClass,
        student: User,
        amount: str = "5000.00",
        paid: str = "0",
        due_date: date = date(2024, 3, 31),
        created_at: Optional[datetime] = None,
        status: str = "pending",
    ) -> StudentFee:
        fee = StudentFee(
            class_id=school_class.id,
            student_id=student.id,
            amount=Decimal(amount),
            paid_amount=Decimal(paid),
            due_date=due_date,
            status=status,
            created_at=created_at or datetime(2024, 3, 1, 9, 0),
        )
        db.add(fee)
        db.commit()
        return fee

    return _make


@pytest.fixture
def make_fee_structure(db: Session) -> Callable[..., FeeStructure]:
    def _make(amount: str = "5000.00", status: str = "active", name: str = "Monthly tuition") -> FeeStructure:
        structure = FeeStructure(name=name, amount=Decimal(amount), status=status)
        db.add(structure)
        db.commit()
        return structure

    return _make


@pytest.fixture
def campus(make_location, make_user, make_class) -> dict:
    """One location, one admin, one teacher and one class with capacity 20."""
    location = make_location()
    admin = make_user(RoleName.ADMIN.value, first_name="Ada")
    teacher = make_user(RoleName.TEACHER.value, first_name="Nimal")
    school_class = make_class(location, teacher)
    return {"location": location, "admin": admin, "teacher": teacher, "class": school_class}
