# classdesk/models/school_class.py
"""
Class model.

A class owns its capacity and the denormalised ``current_enrollment``
counter. The counter is paired with the ``class_enrollments`` rows and the
two only move together through ``EnrollmentService``.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import ClassStatus
from ..database import Base


class SchoolClass(Base):
    """A recurring class taught by one teacher at one location."""

    __tablename__ = "classes"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    title = Column(String(200), nullable=False)
    subject = Column(String(100), nullable=False, index=True)
    level = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    location_id = Column(String(26), ForeignKey("locations.id"), nullable=False, index=True)
    teacher_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    capacity = Column(Integer, nullable=False)
    current_enrollment = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=ClassStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=False), onupdate=func.now(), nullable=True)

    location = relationship("Location", lazy="joined")
    teacher = relationship("User", foreign_keys=[teacher_id], lazy="joined")
    enrollments = relationship(
        "ClassEnrollment",
        back_populates="school_class",
        order_by="ClassEnrollment.enrolled_at",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_classes_capacity_positive"),
        CheckConstraint(
            "current_enrollment >= 0 AND current_enrollment <= capacity",
            name="ck_classes_enrollment_within_capacity",
        ),
    )

    def __repr__(self) -> str:
        return f"<SchoolClass {self.id} {self.title!r} {self.current_enrollment}/{self.capacity}>"
