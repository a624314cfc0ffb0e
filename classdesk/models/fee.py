# classdesk/models/fee.py
"""
Fee models.

``StudentFee`` rows form a financial ledger: they are created when a fee is
assigned, changed only by payment recording, and never deleted. The stored
``status`` is a cache of the last derivation; reports recompute it from the
amounts.
"""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import FeeStatus, FeeStructureStatus
from ..database import Base


class FeeStructure(Base):
    __tablename__ = "fee_structures"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(200), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="LKR")
    frequency = Column(String(20), nullable=False, default="monthly")
    category = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default=FeeStructureStatus.ACTIVE.value)


class StudentFee(Base):
    __tablename__ = "student_fees"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    student_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    class_id = Column(String(26), ForeignKey("classes.id"), nullable=False, index=True)
    fee_structure_id = Column(String(26), ForeignKey("fee_structures.id"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="LKR")
    paid_amount = Column(Numeric(10, 2), nullable=False, default=0)
    due_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=FeeStatus.PENDING.value)
    paid_date = Column(DateTime(timezone=False), nullable=True)
    payment_method = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)
    recorded_by = Column(String(26), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=False), nullable=False, default=datetime.now, index=True)
    updated_at = Column(DateTime(timezone=False), nullable=True, onupdate=datetime.now)

    student = relationship("User", foreign_keys=[student_id], lazy="joined")
    school_class = relationship("SchoolClass", lazy="joined")
    fee_structure = relationship("FeeStructure")

    __table_args__ = (
        # One assignment of a structure per student and class; NULL structures are ad hoc fees
        UniqueConstraint(
            "student_id", "class_id", "fee_structure_id", name="uq_student_fees_assignment"
        ),
    )

    def __repr__(self) -> str:
        return f"<StudentFee {self.id} {self.paid_amount}/{self.amount} {self.status}>"
