# backend/smarttutor/repositories/user_repository.py
"""
User Repository for SmartTutor

Read access to the user directory (tutor lookups and the searchable tutor
listing) plus the one write this service owns: the tutor rating aggregate.
"""

from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import NotFoundException, RepositoryException
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_ONE_DECIMAL = Decimal("0.1")


def rounded_average(rating_sum: int, rating_count: int) -> Optional[Decimal]:
    """Mean of the ratings rounded half-up to one decimal, None when unrated."""
    if rating_count <= 0:
        return None
    return (Decimal(rating_sum) / Decimal(rating_count)).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)


def _contains(term: str) -> str:
    escaped = term.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_tutor(self, tutor_id: str) -> Optional[User]:
        """Return the user only if it exists and holds the tutor role."""
        query = self._build_query().filter(User.id == tutor_id, User.role == RoleName.TUTOR.value)
        return self._execute_first(query)

    def search_tutors(
        self,
        search: Optional[str] = None,
        subject: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[User]:
        """
        Tutor directory, best rated first.

        ``search`` matches name, bio or subjects case-insensitively; ``subject``
        narrows to tutors whose subjects contain it. Unrated tutors sort last,
        ties break by name.
        """
        query = self._build_query().filter(User.role == RoleName.TUTOR.value)
        if search:
            pattern = _contains(search)
            query = query.filter(
                User.name.ilike(pattern, escape="\\")
                | User.bio.ilike(pattern, escape="\\")
                | User.subjects.ilike(pattern, escape="\\")
            )
        if subject:
            query = query.filter(User.subjects.ilike(_contains(subject), escape="\\"))
        query = (
            query.order_by(User.average_rating.desc().nulls_last(), User.name, User.id)
            .offset(skip)
            .limit(limit)
        )
        return self._execute_query(query)

    def add_rating(self, tutor_id: str, rating: int) -> User:
        """
        Fold one rating into the tutor's running aggregate.

        The sum/count increment is a single UPDATE so concurrent submissions
        never lose a rating; the display average is then refreshed from the
        row as written, inside the caller's transaction.
        """
        try:
            result = self.db.execute(
                update(User)
                .where(User.id == tutor_id)
                .values(
                    rating_sum=User.rating_sum + rating,
                    rating_count=User.rating_count + 1,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundException("Tutor not found", details={"tutor_id": tutor_id})

            tutor = self.db.query(User).filter(User.id == tutor_id).populate_existing().one()
            tutor.average_rating = rounded_average(tutor.rating_sum, tutor.rating_count)
            self.db.flush()
            return tutor
        except SQLAlchemyError as e:
            self.logger.error(f"Error adding rating for tutor {tutor_id}: {str(e)}")
            raise RepositoryException(f"Failed to update rating aggregate: {str(e)}") from e

    def set_rating_aggregate(self, tutor_id: str, rating_sum: int, rating_count: int) -> User:
        """Overwrite the aggregate, used when rebuilding from booking history."""
        tutor = self.update(
            tutor_id,
            rating_sum=rating_sum,
            rating_count=rating_count,
            average_rating=rounded_average(rating_sum, rating_count),
        )
        if tutor is None:
            raise NotFoundException("Tutor not found", details={"tutor_id": tutor_id})
        return tutor
