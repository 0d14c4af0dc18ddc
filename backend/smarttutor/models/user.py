# backend/smarttutor/models/user.py
"""
User model for SmartTutor.

Users are owned by the user directory; this service reads them to confirm
tutor existence and role, and writes only the tutor rating aggregate.

Classes:
    User: Student, tutor or admin account plus the tutor rating aggregate
"""

import logging
from typing import List

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName
from ..database import Base

logger = logging.getLogger(__name__)


class User(Base):
    """
    Account referenced by bookings as student or tutor.

    Attributes:
        id: ULID primary key
        name: Display name
        email: Unique email address, used for notifications
        role: One of student, tutor, admin
        bio: Free-text tutor introduction
        subjects: Comma-separated subjects a tutor teaches
        rating_sum: Running sum of feedback ratings received (tutors only)
        rating_count: Number of feedback ratings received (tutors only)
        average_rating: rating_sum / rating_count rounded to one decimal, None until rated
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(100), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String(20), nullable=False, default=RoleName.STUDENT.value, index=True)

    # Tutor directory profile
    bio = Column(Text, nullable=True)
    subjects = Column(String(500), nullable=True)  # comma-separated, e.g. "Mathematics, Physics"

    rating_sum = Column(Integer, nullable=False, default=0, server_default="0")
    rating_count = Column(Integer, nullable=False, default=0, server_default="0")
    average_rating = Column(Numeric(2, 1), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("role IN ('student', 'tutor', 'admin')", name="ck_users_role"),
        CheckConstraint("rating_sum >= 0 AND rating_count >= 0", name="ck_users_rating_non_negative"),
    )

    @property
    def subject_list(self) -> List[str]:
        return [s.strip() for s in (self.subjects or "").split(",") if s.strip()]

    @property
    def is_tutor(self) -> bool:
        return self.role == RoleName.TUTOR.value

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email} role={self.role}>"
