# classdesk/models/user.py
"""
User model.

Users are owned by the identity collaborator; this service only reads them
to resolve names and to confirm that an enrollment target is a student.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName, UserStatus
from ..database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    role = Column(String(20), nullable=False, default=RoleName.STUDENT.value, index=True)
    status = Column(String(20), nullable=False, default=UserStatus.ACTIVE.value)
    location_id = Column(String(26), ForeignKey("locations.id"), nullable=True)
    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)

    location = relationship("Location")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_student(self) -> bool:
        return self.role == RoleName.STUDENT.value

    def __repr__(self) -> str:
        return f"<User {self.id} {self.role}>"
