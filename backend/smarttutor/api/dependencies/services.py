# backend/smarttutor/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...repositories import RepositoryFactory
from ...repositories.service_catalog_repository import ServiceCatalogRepository
from ...repositories.user_repository import UserRepository
from ...services.booking_lifecycle_service import BookingLifecycleService
from ...services.booking_service import BookingService
from ...services.email import EmailSender, build_email_service
from ...services.notification_service import NotificationService
from ...services.template_service import TemplateService
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_template_service() -> TemplateService:
    """Get singleton template service (the Jinja environment is reusable)."""
    return TemplateService()


@lru_cache(maxsize=1)
def get_email_service() -> EmailSender:
    """Get singleton email sender chosen from settings."""
    return build_email_service()


def get_notification_service(
    template_service: TemplateService = Depends(get_template_service),
    email_service: EmailSender = Depends(get_email_service),
) -> NotificationService:
    """
    Get notification service instance.

    Args:
        template_service: Renders email bodies
        email_service: Delivers rendered emails

    Returns:
        NotificationService instance
    """
    return NotificationService(template_service=template_service, email_service=email_service)


def get_booking_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        notification_service: Notification service for sending emails

    Returns:
        BookingService instance
    """
    return BookingService(db, notification_service)


def get_booking_lifecycle_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingLifecycleService:
    """Get lifecycle service for status changes, feedback and ratings."""
    return BookingLifecycleService(db, notification_service)


def get_service_catalog_repository(db: Session = Depends(get_db)) -> ServiceCatalogRepository:
    """Catalog reads need no service layer; hand out the repository directly."""
    return RepositoryFactory.create_service_catalog_repository(db)


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    """Tutor directory reads go straight to the repository."""
    return RepositoryFactory.create_user_repository(db)
