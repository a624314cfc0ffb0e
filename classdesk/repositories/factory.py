# classdesk/repositories/factory.py
"""
Repository Factory for classdesk

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .attendance_repository import AttendanceRepository
    from .class_repository import ClassRepository
    from .conflict_checker_repository import ConflictCheckerRepository
    from .fee_repository import FeeRepository
    from .schedule_repository import ScheduleRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        """Create a generic base repository for any model."""
        return BaseRepository(db, model)

    @staticmethod
    def create_conflict_checker_repository(db: Session) -> "ConflictCheckerRepository":
        """Create repository for conflict checking queries."""
        from .conflict_checker_repository import ConflictCheckerRepository

        return ConflictCheckerRepository(db)

    @staticmethod
    def create_schedule_repository(db: Session) -> "ScheduleRepository":
        from .schedule_repository import ScheduleRepository

        return ScheduleRepository(db)

    @staticmethod
    def create_attendance_repository(db: Session) -> "AttendanceRepository":
        """Create repository for attendance marking and windowed reads."""
        from .attendance_repository import AttendanceRepository

        return AttendanceRepository(db)

    @staticmethod
    def create_fee_repository(db: Session) -> "FeeRepository":
        from .fee_repository import FeeRepository

        return FeeRepository(db)

    @staticmethod
    def create_class_repository(db: Session) -> "ClassRepository":
        """Create repository for classes and their enrollment roster."""
        from .class_repository import ClassRepository

        return ClassRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)
