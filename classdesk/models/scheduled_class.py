# classdesk/models/scheduled_class.py
"""
Scheduled class session model.

A session occupies [start_time, end_time) at one location on one date.
Only sessions in the ``scheduled`` status take part in conflict checks;
completed and cancelled sessions are history and never reopened.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import SessionStatus
from ..database import Base


class ScheduledClass(Base):
    """One dated occurrence of a class."""

    __tablename__ = "scheduled_classes"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    class_id = Column(String(26), ForeignKey("classes.id"), nullable=False, index=True)
    teacher_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    location_id = Column(String(26), ForeignKey("locations.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=SessionStatus.SCHEDULED.value)
    cancellation_note = Column(Text, nullable=True)
    created_by = Column(String(26), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=False), onupdate=func.now(), nullable=True)

    school_class = relationship("SchoolClass", lazy="joined")
    location = relationship("Location", lazy="joined")
    teacher = relationship("User", foreign_keys=[teacher_id], lazy="joined")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_scheduled_classes_time_order"),
        CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled')",
            name="ck_scheduled_classes_status",
        ),
        # Backstop for the read-then-decide conflict check
        Index(
            "uq_scheduled_classes_active_slot",
            "class_id",
            "location_id",
            "date",
            "start_time",
            unique=True,
            sqlite_where=text("status = 'scheduled'"),
            postgresql_where=text("status = 'scheduled'"),
        ),
        Index("ix_scheduled_classes_lookup", "class_id", "location_id", "date", "status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.SCHEDULED.value

    def __repr__(self) -> str:
        return (
            f"<ScheduledClass {self.id} {self.date} "
            f"{self.start_time}-{self.end_time} {self.status}>"
        )
