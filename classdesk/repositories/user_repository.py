# classdesk/repositories/user_repository.py
"""User lookups. Users are collaborator data and are never written here."""

import logging
from typing import Dict, Iterable, List, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_by_ids(self, user_ids: Iterable[str]) -> Dict[str, User]:
        """Map of id -> user for every id that exists."""
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        try:
            users = cast(List[User], self.db.query(User).filter(User.id.in_(ids)).all())
            return {user.id: user for user in users}
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading users: {str(e)}")
            raise RepositoryException(f"Failed to load users: {str(e)}")
