"""Fixtures for tests that run against a real file-backed SQLite database."""

import pytest
from sqlalchemy.orm import sessionmaker

from smarttutor.database import Base, build_engine


@pytest.fixture
def file_sessionmaker(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'bookings.db'}")
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    finally:
        engine.dispose()
