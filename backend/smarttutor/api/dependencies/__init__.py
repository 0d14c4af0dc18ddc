# backend/smarttutor/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_current_actor, require_admin
from .database import get_db
from .services import (
    get_booking_lifecycle_service,
    get_booking_service,
    get_notification_service,
    get_service_catalog_repository,
    get_user_repository,
)

__all__ = [
    # Auth
    "get_current_actor",
    "require_admin",
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_booking_lifecycle_service",
    "get_notification_service",
    "get_service_catalog_repository",
    "get_user_repository",
]
