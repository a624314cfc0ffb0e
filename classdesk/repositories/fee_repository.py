# classdesk/repositories/fee_repository.py
"""Fee Repository for classdesk. Fees are a ledger: no delete path exists."""

from datetime import datetime
import logging
from typing import Iterable, List, Optional, Set, Tuple, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.fee import StudentFee
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class FeeRepository(BaseRepository[StudentFee]):
    def __init__(self, db: Session):
        super().__init__(db, StudentFee)

    def get_for_update(self, fee_id: str) -> Optional[StudentFee]:
        """Load a fee row, locking it where the dialect supports row locks."""
        try:
            query = self.db.query(StudentFee).filter(StudentFee.id == fee_id)
            if self.supports_row_locks:
                query = query.with_for_update()
            return cast(Optional[StudentFee], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking fee {fee_id}: {str(e)}")
            raise RepositoryException(f"Failed to load fee: {str(e)}")

    def get_for_classes(
        self,
        class_ids: Iterable[str],
        created_from: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
    ) -> List[StudentFee]:
        """
        All fees of the given classes created in ``[created_from, created_before)``.

        One query for every class; callers bucket rows by ``class_id``.
        """
        ids = list(class_ids)
        if not ids:
            return []
        try:
            query = self.db.query(StudentFee).filter(StudentFee.class_id.in_(ids))
            if created_from is not None:
                query = query.filter(StudentFee.created_at >= created_from)
            if created_before is not None:
                query = query.filter(StudentFee.created_at < created_before)
            return cast(List[StudentFee], query.order_by(StudentFee.created_at).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading fees for classes: {str(e)}")
            raise RepositoryException(f"Failed to load fees: {str(e)}")

    def get_assigned_pairs(
        self, fee_structure_id: str, class_ids: Iterable[str]
    ) -> Set[Tuple[str, str]]:
        """(student_id, class_id) pairs that already carry this fee structure."""
        ids = list(class_ids)
        if not ids:
            return set()
        try:
            rows = (
                self.db.query(StudentFee.student_id, StudentFee.class_id)
                .filter(
                    StudentFee.fee_structure_id == fee_structure_id,
                    StudentFee.class_id.in_(ids),
                )
                .all()
            )
            return {(student_id, class_id) for student_id, class_id in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading assignments of {fee_structure_id}: {str(e)}")
            raise RepositoryException(f"Failed to load fee assignments: {str(e)}")
