# backend/smarttutor/models/service.py
"""
Service catalog model for SmartTutor.

A service is what a student books: a titled offering with a price and a
session length. Bookings snapshot both at creation time.
"""

from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base


class ServiceCategory(str, Enum):
    """Catalog categories offered on the marketplace."""

    ASSIGNMENT_HELP = "Assignment Help"
    PERFORMANCE_REVIEW = "Performance Review"
    MENTORING = "1-on-1 Mentoring"
    STUDY_GROUPS = "Study Groups"
    EXAM_PREPARATION = "Exam Preparation"
    SKILLS_WORKSHOP = "Skills Workshop"


class Service(Base):
    __tablename__ = "services"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_services_price_non_negative"),
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
    )

    def __repr__(self) -> str:
        return f"<Service {self.id}: {self.title} ({self.duration_minutes}min @ {self.price})>"
