"""Tutor directory search and ordering against SQLite."""

from decimal import Decimal

import pytest

from smarttutor.core.enums import RoleName
from smarttutor.repositories import RepositoryFactory


@pytest.fixture
def repository(db):
    return RepositoryFactory.create_user_repository(db)


@pytest.fixture
def directory(db, make_user):
    def _tutor(name, bio, subjects, rating_sum=0, rating_count=0):
        user = make_user(RoleName.TUTOR, name=name)
        user.bio = bio
        user.subjects = subjects
        user.rating_sum = rating_sum
        user.rating_count = rating_count
        user.average_rating = (
            Decimal(rating_sum) / Decimal(rating_count) if rating_count else None
        )
        db.commit()
        return user

    return {
        "sarah": _tutor("Dr. Sarah Johnson", "Mathematics PhD", "Mathematics, Statistics", 9, 2),
        "michael": _tutor("Prof. Michael Chen", "Exam technique coach", "Physics, Mathematics", 5, 1),
        "emily": _tutor("Dr. Emily Brown", None, "Chemistry", 0, 0),
        "alex": make_user(RoleName.STUDENT, name="Alex Mathematics"),
    }


def _names(tutors):
    return [t.name for t in tutors]


class TestSearchTutors:
    def test_only_tutors_best_rated_first_unrated_last(self, repository, directory):
        assert _names(repository.search_tutors()) == [
            "Prof. Michael Chen",
            "Dr. Sarah Johnson",
            "Dr. Emily Brown",
        ]

    def test_search_matches_name_case_insensitively(self, repository, directory):
        assert _names(repository.search_tutors(search="EMILY")) == ["Dr. Emily Brown"]

    def test_search_matches_bio_and_subjects(self, repository, directory):
        assert _names(repository.search_tutors(search="exam technique")) == ["Prof. Michael Chen"]
        assert _names(repository.search_tutors(search="statist")) == ["Dr. Sarah Johnson"]

    def test_subject_filter(self, repository, directory):
        assert _names(repository.search_tutors(subject="mathematics")) == [
            "Prof. Michael Chen",
            "Dr. Sarah Johnson",
        ]
        assert repository.search_tutors(subject="History") == []

    def test_wildcards_are_literal(self, repository, directory):
        assert repository.search_tutors(search="%") == []
        assert repository.search_tutors(search="_") == []

    def test_paging(self, repository, directory):
        assert _names(repository.search_tutors(skip=1, limit=1)) == ["Dr. Sarah Johnson"]
