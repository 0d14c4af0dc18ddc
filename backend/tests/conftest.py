# backend/tests/conftest.py
"""
Pytest configuration for the SmartTutor booking core.

Environment is pinned BEFORE any smarttutor import so the module-level
settings object sees test values: in-memory SQLite, no Redis lock (so tests
never need a Redis server) and console email only.
"""

import os

os.environ["CI"] = "true"  # skip backend/.env
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BOOKING_LOCK_ENABLED"] = "false"
os.environ["EMAIL_PROVIDER"] = "console"
os.environ["NOTIFICATIONS_ENABLED"] = "true"

from datetime import date, timedelta
from decimal import Decimal
from typing import Generator
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from smarttutor.api.dependencies.database import get_db
from smarttutor.api.dependencies.services import get_notification_service
from smarttutor.core.enums import RoleName
from smarttutor.database import Base
from smarttutor.main import app
from smarttutor.models.service import Service, ServiceCategory
from smarttutor.models.user import User
from smarttutor.principal import Actor
from smarttutor.services.notification_service import NotificationService
from smarttutor.services.template_service import TemplateService
from tests.helpers import actor_for


@pytest.fixture
def test_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(test_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Factories
# ============================================================================


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role: RoleName = RoleName.STUDENT, name: str | None = None) -> User:
        counter["n"] += 1
        user = User(
            name=name or f"{role.value.title()} {counter['n']}",
            email=f"{role.value}{counter['n']}@example.com",
            role=role.value,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def make_service(db):
    def _make_service(
        title: str = "One-on-One Tutoring",
        price: str = "50.00",
        duration_minutes: int = 60,
        is_active: bool = True,
        category: ServiceCategory = ServiceCategory.MENTORING,
    ) -> Service:
        service = Service(
            title=title,
            description=f"{title} session",
            category=category.value,
            price=Decimal(price),
            duration_minutes=duration_minutes,
            is_active=is_active,
        )
        db.add(service)
        db.commit()
        return service

    return _make_service


@pytest.fixture
def student(make_user) -> User:
    return make_user(RoleName.STUDENT, name="Alex Student")


@pytest.fixture
def other_student(make_user) -> User:
    return make_user(RoleName.STUDENT, name="Sam Student")


@pytest.fixture
def tutor(make_user) -> User:
    return make_user(RoleName.TUTOR, name="Dr. Sarah Johnson")


@pytest.fixture
def admin(make_user) -> User:
    return make_user(RoleName.ADMIN, name="Site Admin")


@pytest.fixture
def service(make_service) -> Service:
    return make_service()


@pytest.fixture
def student_actor(student) -> Actor:
    return actor_for(student)


@pytest.fixture
def tutor_actor(tutor) -> Actor:
    return actor_for(tutor)


@pytest.fixture
def admin_actor(admin) -> Actor:
    return actor_for(admin)


@pytest.fixture
def booking_day() -> date:
    return date.today() + timedelta(days=7)


# ============================================================================
# Notifications
# ============================================================================


@pytest.fixture
def email_sender() -> MagicMock:
    sender = MagicMock()
    sender.send_email.return_value = True
    return sender


@pytest.fixture
def notification_service(email_sender) -> NotificationService:
    return NotificationService(template_service=TemplateService(), email_service=email_sender)


# ============================================================================
# HTTP client
# ============================================================================


@pytest.fixture
def client(db, notification_service) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_service] = lambda: notification_service
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
