"""Tests for tour routes: listing, reports, CRUD and role checks."""

import unittest
from datetime import datetime, timezone

from fastapi.testclient import TestClient

from api.main import app
from api.dependencies import get_tour_repo, get_user_repo
from adapter.fake.tour_repository import FakeTourRepository
from adapter.fake.user_repository import FakeUserRepository
from domain.model.user import Role
from services import tour_service
from services.token_service import issue_access_token


def _tour_payload(**overrides) -> dict:
    payload = {
        "name": "The Forest Hiker",
        "duration": 5,
        "max_group_size": 25,
        "difficulty": "easy",
        "price": 397,
        "summary": "Breathtaking hike through the Canadian Banff National Park",
        "description": "Lorem ipsum dolor sit amet.",
        "image_cover": "tour-1-cover.jpg",
        "start_dates": ["2021-04-25T09:00:00Z", "2021-07-20T09:00:00Z"],
    }
    payload.update(overrides)
    return payload


class TourRoutesTestCase(unittest.TestCase):

    def setUp(self):
        self.tours = FakeTourRepository()
        self.users = FakeUserRepository()
        app.dependency_overrides[get_tour_repo] = lambda: self.tours
        app.dependency_overrides[get_user_repo] = lambda: self.users
        self.client = TestClient(app)

        self.headers = {}
        for role in Role:
            user = self.users.create(role.value, f"{role.value}@natours.io", "hash", role=role)
            self.headers[role] = {"Authorization": f"Bearer {issue_access_token(user.id)}"}

    def tearDown(self):
        app.dependency_overrides.clear()

    def _seed(self):
        for name, price, rating, difficulty in (
            ("The Forest Hiker", 397, 4.7, "easy"),
            ("The Sea Explorer", 497, 4.8, "medium"),
            ("The Snow Adventurer", 997, 4.5, "difficult"),
            ("The City Wanderer", 1197, 4.6, "easy"),
            ("The Park Camper", 1497, 4.9, "medium"),
            ("The Sports Lover", 2997, 4.7, "difficult"),
        ):
            tour_service.create_tour(self.tours, _tour_payload(
                name=name, price=price, ratings_average=rating, difficulty=difficulty,
                start_dates=[datetime(2021, 4, 25, 9, tzinfo=timezone.utc), datetime(2021, 7, 20, 9, tzinfo=timezone.utc)],
            ))


class TestListTours(TourRoutesTestCase):

    def test_list_requires_login(self):
        response = self.client.get("/api/v1/tours")
        self.assertEqual(response.status_code, 401)

    def test_filter_sort_and_page(self):
        self._seed()

        response = self.client.get(
            "/api/v1/tours?price[gte]=500&sort=-price&fields=name,price&limit=2&page=1",
            headers=self.headers[Role.USER],
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["results"], 2)
        self.assertEqual([t["name"] for t in body["data"]["tours"]], ["The Sports Lover", "The Park Camper"])
        self.assertEqual(set(body["data"]["tours"][0]), {"id", "name", "price"})

    def test_unknown_operator_is_rejected(self):
        response = self.client.get("/api/v1/tours?price[ne]=500", headers=self.headers[Role.USER])

        self.assertEqual(response.status_code, 400)
        self.assertIn("Unsupported filter operator", response.json()["message"])

    def test_bad_filter_value(self):
        response = self.client.get("/api/v1/tours?duration=abc", headers=self.headers[Role.USER])

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Invalid duration: abc")

    def test_bad_pagination_falls_back_to_defaults(self):
        self._seed()

        response = self.client.get("/api/v1/tours?page=abc&limit=-1", headers=self.headers[Role.USER])

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["results"], 6)

    def test_huge_pagination_falls_back_to_defaults(self):
        self._seed()

        response = self.client.get(
            "/api/v1/tours?page=99999999999999999999&limit=99999999999999999999",
            headers=self.headers[Role.USER],
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["results"], 6)


class TestReports(TourRoutesTestCase):

    def test_top_five_cheap_is_public(self):
        self._seed()

        response = self.client.get("/api/v1/tours/top-5-cheap")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["results"], 5)
        self.assertEqual(body["data"]["tours"][0]["name"], "The Park Camper")

    def test_tour_stats(self):
        self._seed()

        response = self.client.get("/api/v1/tours/tour-stats")

        self.assertEqual(response.status_code, 200)
        stats = response.json()["data"]["stats"]
        self.assertEqual([s["difficulty"] for s in stats], ["EASY", "MEDIUM", "DIFFICULT"])

    def test_monthly_plan_needs_staff_role(self):
        response = self.client.get("/api/v1/tours/monthly-plan/2021", headers=self.headers[Role.USER])
        self.assertEqual(response.status_code, 403)

    def test_monthly_plan(self):
        self._seed()

        response = self.client.get("/api/v1/tours/monthly-plan/2021", headers=self.headers[Role.GUIDE])

        self.assertEqual(response.status_code, 200)
        plan = response.json()["data"]["plan"]
        self.assertEqual(plan[0]["num_tour_starts"], 6)
        self.assertEqual({p["month"] for p in plan}, {4, 7})

    def test_monthly_plan_rejects_bad_year(self):
        response = self.client.get("/api/v1/tours/monthly-plan/abc", headers=self.headers[Role.ADMIN])
        self.assertEqual(response.status_code, 400)


class TestTourCrud(TourRoutesTestCase):

    def test_user_cannot_create(self):
        response = self.client.post("/api/v1/tours", json=_tour_payload(), headers=self.headers[Role.USER])
        self.assertEqual(response.status_code, 403)

    def test_lead_guide_creates_tour(self):
        response = self.client.post("/api/v1/tours", json=_tour_payload(), headers=self.headers[Role.LEAD_GUIDE])

        self.assertEqual(response.status_code, 201)
        tour = response.json()["data"]["tour"]
        self.assertEqual(tour["slug"], "the-forest-hiker")
        self.assertEqual(tour["ratings_average"], 1.0)
        self.assertIn(tour["id"], self.tours.store)

    def test_create_reports_all_violations(self):
        response = self.client.post(
            "/api/v1/tours",
            json={"name": "x" * 41, "difficulty": "extreme"},
            headers=self.headers[Role.ADMIN],
        )

        self.assertEqual(response.status_code, 400)
        message = response.json()["message"]
        self.assertTrue(message.startswith("Invalid input data."))
        self.assertIn("at most 40 characters", message)
        self.assertIn("Difficulty 'extreme' is not supported", message)

    def test_wrong_type_is_invalid_input(self):
        response = self.client.post(
            "/api/v1/tours",
            json=_tour_payload(duration="five"),
            headers=self.headers[Role.ADMIN],
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("duration", response.json()["message"])

    def test_duplicate_name(self):
        self.client.post("/api/v1/tours", json=_tour_payload(), headers=self.headers[Role.ADMIN])

        response = self.client.post("/api/v1/tours", json=_tour_payload(), headers=self.headers[Role.ADMIN])

        self.assertEqual(response.status_code, 400)
        self.assertIn("Duplicate field value", response.json()["message"])

    def test_get_update_delete(self):
        created = self.client.post("/api/v1/tours", json=_tour_payload(), headers=self.headers[Role.ADMIN])
        tour_id = created.json()["data"]["tour"]["id"]

        got = self.client.get(f"/api/v1/tours/{tour_id}")
        self.assertEqual(got.json()["data"]["tour"]["name"], "The Forest Hiker")

        updated = self.client.patch(
            f"/api/v1/tours/{tour_id}", json={"price": 500}, headers=self.headers[Role.ADMIN],
        )
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.json()["data"]["tour"]["price"], 500)

        deleted = self.client.delete(f"/api/v1/tours/{tour_id}", headers=self.headers[Role.ADMIN])
        self.assertEqual(deleted.status_code, 204)
        self.assertEqual(self.client.get(f"/api/v1/tours/{tour_id}").status_code, 404)

    def test_guide_cannot_delete(self):
        response = self.client.delete("/api/v1/tours/anything", headers=self.headers[Role.GUIDE])
        self.assertEqual(response.status_code, 403)

    def test_unknown_tour(self):
        response = self.client.get("/api/v1/tours/missing")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"status": "fail", "message": "No tour found with that ID"})


if __name__ == '__main__':
    unittest.main()
