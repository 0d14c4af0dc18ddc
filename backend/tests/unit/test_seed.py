"""Catalog seeding from the bundled YAML."""

from decimal import Decimal

from smarttutor.models.service import Service
from smarttutor.models.user import User
from smarttutor.seed import load_seed_yaml, seed_catalog


def test_bundled_seed_file_parses():
    services, users = load_seed_yaml()
    assert {s["title"] for s in services} == {
        "One-on-One Tutoring",
        "Group Study Session",
        "Exam Preparation",
    }
    assert sum(1 for u in users if u["role"] == "tutor") == 3


def test_seed_is_idempotent(db):
    first = seed_catalog(db)
    second = seed_catalog(db)

    assert first["services_created"] == 3
    assert second["services_created"] == 0
    assert second["services_updated"] == 3
    assert db.query(Service).count() == 3
    assert db.query(User).filter(User.role == "tutor").count() == 3

    exam = db.query(Service).filter(Service.title == "Exam Preparation").one()
    assert exam.price == Decimal("60.00")
    assert exam.duration_minutes == 120


def test_custom_seed_file(db, tmp_path):
    seed_file = tmp_path / "catalog.yaml"
    seed_file.write_text(
        "services:\n"
        "  - title: Skills Workshop\n"
        "    description: Hands-on practice\n"
        "    category: Skills Workshop\n"
        "    price: '25.50'\n"
        "    duration_minutes: 45\n"
        "users: []\n"
    )

    stats = seed_catalog(db, seed_file)

    assert stats == {"services_created": 1, "services_updated": 0, "users_created": 0, "users_updated": 0}
    assert db.query(Service).one().price == Decimal("25.50")


def test_tutor_profiles_are_seeded(db):
    seed_catalog(db)

    sarah = db.query(User).filter(User.email == "sarah.johnson@example.com").one()
    assert sarah.subject_list == ["Mathematics", "Statistics"]
    assert sarah.bio

    student = db.query(User).filter(User.email == "alex.student@example.com").one()
    assert student.subjects is None
