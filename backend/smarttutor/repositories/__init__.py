# backend/smarttutor/repositories/__init__.py
"""
Repository layer for SmartTutor.

Repositories own all SQLAlchemy access; services never query the session
directly.
"""

from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .service_catalog_repository import ServiceCatalogRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "IRepository",
    "RepositoryFactory",
    "ServiceCatalogRepository",
    "UserRepository",
]
