# classdesk/models/attendance.py
"""Attendance record model. One row per (student, class, date)."""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class Attendance(Base):
    __tablename__ = "attendance"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    student_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    class_id = Column(String(26), ForeignKey("classes.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    status = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    marked_by = Column(String(26), ForeignKey("users.id"), nullable=True)
    marked_at = Column(DateTime(timezone=False), nullable=False, default=datetime.now)

    student = relationship("User", foreign_keys=[student_id], lazy="joined")
    school_class = relationship("SchoolClass", lazy="joined")

    __table_args__ = (
        UniqueConstraint("student_id", "class_id", "date", name="uq_attendance_student_class_date"),
        CheckConstraint(
            "status IN ('present', 'absent', 'late', 'excused')",
            name="ck_attendance_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Attendance {self.student_id} {self.class_id} {self.date} {self.status}>"
