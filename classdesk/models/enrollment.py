# classdesk/models/enrollment.py
"""
Enrollment relation, stored on both sides.

``ClassEnrollment`` is the class's ordered roster; ``StudentClass`` is the
student's own class list. Rows are appended and never removed.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import EnrollmentStatus
from ..database import Base


class ClassEnrollment(Base):
    __tablename__ = "class_enrollments"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    class_id = Column(String(26), ForeignKey("classes.id"), nullable=False, index=True)
    student_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=EnrollmentStatus.ACTIVE.value)
    enrolled_at = Column(DateTime(timezone=False), nullable=False, default=datetime.now)

    school_class = relationship("SchoolClass", back_populates="enrollments")
    student = relationship("User", foreign_keys=[student_id])

    __table_args__ = (
        UniqueConstraint("class_id", "student_id", name="uq_class_enrollments_class_student"),
    )


class StudentClass(Base):
    __tablename__ = "student_classes"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    student_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    class_id = Column(String(26), ForeignKey("classes.id"), nullable=False, index=True)
    added_at = Column(DateTime(timezone=False), nullable=False, default=datetime.now)

    __table_args__ = (
        UniqueConstraint("student_id", "class_id", name="uq_student_classes_student_class"),
    )
