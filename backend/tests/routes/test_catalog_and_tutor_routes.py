"""Service catalog, tutor endpoints, health and metrics."""

from decimal import Decimal

import pytest

from smarttutor.core.enums import RoleName
from tests.helpers import auth_headers


class TestServices:
    def test_lists_only_active_services(self, client, make_service):
        make_service(title="One-on-One Tutoring")
        make_service(title="Retired Workshop", is_active=False)

        response = client.get("/api/v1/services")

        assert response.status_code == 200
        titles = [s["title"] for s in response.json()["services"]]
        assert titles == ["One-on-One Tutoring"]

    def test_filter_by_category(self, client, make_service):
        from smarttutor.models.service import ServiceCategory

        make_service(title="Exam Preparation", category=ServiceCategory.EXAM_PREPARATION)
        make_service(title="Group Study Session", category=ServiceCategory.STUDY_GROUPS)

        response = client.get("/api/v1/services", params={"category": "Study Groups"})

        assert [s["title"] for s in response.json()["services"]] == ["Group Study Session"]

    def test_get_service(self, client, service):
        body = client.get(f"/api/v1/services/{service.id}").json()
        assert body["price"] == 50.0
        assert body["duration_minutes"] == 60

    def test_missing_service(self, client):
        assert client.get("/api/v1/services/01HF4G12ABCDEF3456789XYZAB").status_code == 404


class TestTutors:
    def test_directory_requires_authentication(self, client, tutor):
        assert client.get("/api/v1/tutors").status_code == 401

    def test_directory_lists_tutors_with_rating(self, client, db, tutor, student, make_user):
        tutor.bio = "Mathematics PhD"
        tutor.subjects = "Mathematics, Statistics"
        tutor.rating_sum, tutor.rating_count, tutor.average_rating = 9, 2, Decimal("4.5")
        db.commit()
        make_user(RoleName.TUTOR, name="Dr. Emily Brown")

        response = client.get("/api/v1/tutors", headers=auth_headers(student))

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["tutors"][0] == {
            "id": tutor.id,
            "name": "Dr. Sarah Johnson",
            "bio": "Mathematics PhD",
            "subjects": ["Mathematics", "Statistics"],
            "average_rating": 4.5,
            "rating_count": 2,
        }
        assert body["tutors"][1]["name"] == "Dr. Emily Brown"
        assert body["tutors"][1]["average_rating"] is None

    def test_directory_search_and_subject(self, client, db, tutor, student, make_user):
        tutor.subjects = "Mathematics"
        other = make_user(RoleName.TUTOR, name="Prof. Michael Chen")
        other.subjects = "Physics"
        db.commit()

        by_name = client.get(
            "/api/v1/tutors", params={"search": "michael"}, headers=auth_headers(student)
        ).json()
        by_subject = client.get(
            "/api/v1/tutors", params={"subject": "Mathematics"}, headers=auth_headers(student)
        ).json()

        assert [t["name"] for t in by_name["tutors"]] == ["Prof. Michael Chen"]
        assert [t["name"] for t in by_subject["tutors"]] == ["Dr. Sarah Johnson"]

    def test_unrated_tutor(self, client, tutor):
        body = client.get(f"/api/v1/tutors/{tutor.id}/rating").json()
        assert body == {"tutor_id": tutor.id, "average_rating": None, "rating_count": 0}

    def test_rating_for_non_tutor_is_404(self, client, student):
        assert client.get(f"/api/v1/tutors/{student.id}/rating").status_code == 404

    def test_rebuild_requires_admin(self, client, tutor, student, admin):
        url = f"/api/v1/tutors/{tutor.id}/rating/rebuild"
        assert client.post(url, headers=auth_headers(student)).status_code == 403
        assert client.post(url, headers=auth_headers(admin)).status_code == 200

    def test_earnings_for_tutor(self, client, tutor):
        response = client.get("/api/v1/tutors/earnings", headers=auth_headers(tutor))
        assert response.status_code == 200
        assert response.json() == {"tutor_id": tutor.id, "total": 0.0, "monthly": []}

    @pytest.mark.parametrize("params, status_code", [({}, 400), ({"tutor_id": "X"}, 200)])
    def test_earnings_for_admin(self, client, admin, params, status_code):
        response = client.get("/api/v1/tutors/earnings", params=params, headers=auth_headers(admin))
        assert response.status_code == status_code

    def test_earnings_forbidden_for_student(self, client, student):
        response = client.get("/api/v1/tutors/earnings", headers=auth_headers(student))
        assert response.status_code == 403


class TestOperationalEndpoints:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["database"] == "ok"
        assert body["service"] == "smarttutor-api"

    def test_metrics_exposition(self, client, service):
        client.get(f"/api/v1/services/{service.id}")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "smarttutor_" in response.text
