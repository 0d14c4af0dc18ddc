# backend/smarttutor/models/__init__.py
"""
SQLAlchemy models for SmartTutor.

Importing this package registers every table on ``Base.metadata``.
"""

from .booking import Booking, BookingStatus, PaymentStatus
from .service import Service, ServiceCategory
from .user import User

__all__ = [
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "Service",
    "ServiceCategory",
    "User",
]
