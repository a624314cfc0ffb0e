# classdesk/models/location.py
"""Teaching location (branch) model. Read-only in this service."""

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Location(Base):
    __tablename__ = "locations"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(200), nullable=False)
    address = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime(timezone=False), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Location {self.id} {self.name!r}>"
