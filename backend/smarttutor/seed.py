#!/usr/bin/env python3
# backend/smarttutor/seed.py
"""
Seed the service catalog and tutor directory from YAML.

Idempotent: services are matched by title and users by email, so running it
twice updates rows in place rather than duplicating them.

Usage:
    python -m smarttutor.seed
    python -m smarttutor.seed --create-tables
"""

import argparse
from decimal import Decimal
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session
import yaml

from .database import Base, SessionLocal, engine
from .models.service import Service, ServiceCategory
from .models.user import User
from .repositories import RepositoryFactory

logger = logging.getLogger(__name__)

SEED_FILE = Path(__file__).parent / "seed_data" / "catalog.yaml"


def load_seed_yaml(path: Optional[Path] = None) -> Tuple[list, list]:
    """Load services and users from the seed file."""
    with open(path or SEED_FILE, "r") as f:
        data = yaml.safe_load(f) or {}
    return data.get("services", []), data.get("users", [])


def _upsert_service(db: Session, item: Dict[str, Any]) -> bool:
    category = ServiceCategory(item["category"]).value
    existing = RepositoryFactory.create_service_catalog_repository(db).find_one_by(
        title=item["title"]
    )
    fields = {
        "description": item["description"],
        "category": category,
        "price": Decimal(str(item["price"])),
        "duration_minutes": int(item["duration_minutes"]),
        "is_active": bool(item.get("is_active", True)),
    }
    if existing:
        for key, value in fields.items():
            setattr(existing, key, value)
        return False
    db.add(Service(title=item["title"], **fields))
    return True


def _user_fields(item: Dict[str, Any]) -> Dict[str, Any]:
    subjects = item.get("subjects") or []
    return {
        "name": item["name"],
        "role": item["role"],
        "bio": item.get("bio"),
        "subjects": ", ".join(subjects) or None,
    }


def _upsert_user(db: Session, item: Dict[str, Any]) -> bool:
    fields = _user_fields(item)
    existing = RepositoryFactory.create_user_repository(db).find_one_by(email=item["email"])
    if existing:
        for key, value in fields.items():
            setattr(existing, key, value)
        return False
    db.add(User(email=item["email"], **fields))
    return True


def seed_catalog(db: Session, path: Optional[Path] = None) -> Dict[str, int]:
    """
    Seed services and users.

    Returns:
        {"services_created", "services_updated", "users_created", "users_updated"}
    """
    services, users = load_seed_yaml(path)
    stats = {"services_created": 0, "services_updated": 0, "users_created": 0, "users_updated": 0}

    try:
        for item in services:
            key = "services_created" if _upsert_service(db, item) else "services_updated"
            stats[key] += 1
        for item in users:
            key = "users_created" if _upsert_user(db, item) else "users_updated"
            stats[key] += 1
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Seeded catalog: {stats}")
    return stats


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the SmartTutor catalog")
    parser.add_argument("--file", type=Path, default=None, help="Seed YAML (defaults to bundled catalog)")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create tables from the ORM metadata first (development only; use alembic otherwise)",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if args.create_tables:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        stats = seed_catalog(db, args.file)
    finally:
        db.close()
    print(
        f"Services: {stats['services_created']} created, {stats['services_updated']} updated. "
        f"Users: {stats['users_created']} created, {stats['users_updated']} updated."
    )


if __name__ == "__main__":
    main()
