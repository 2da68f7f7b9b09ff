"""
HTTP-level tests: status codes, error envelopes and payload shapes.
"""

from datetime import datetime

import pytest

from fitsched.core.enums import TrainingType


@pytest.fixture
def setup(factory, geocoder):
    geocoder.register("Home St 1, 00-001 Warszawa", 52.23, 21.01)
    geocoder.register("Near St 2, 00-002 Warszawa", 52.239, 21.01)
    gym = factory.gym("Near Gym", location=factory.location("Near St", "2", "00-002", "Warszawa"))
    return {
        "gym": gym,
        "room": factory.room(gym),
        "trainer": factory.trainer(),
        "alice": factory.client("Alice"),
    }


def _create_training(api_client, setup, client_ids=()):
    response = api_client.post(
        "/api/trainings",
        json={
            "trainer_id": setup["trainer"].id,
            "room_id": setup["room"].id,
            "price": 75.5,
            "type": "Cardio",
            "client_ids": list(client_ids),
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def _place(api_client, training_id, day="Monday", start="10:00", end="11:00"):
    return api_client.put(
        f"/api/trainings/{training_id}/window",
        json={"day_of_week": day, "start_time": start, "end_time": end},
    )


class TestHealth:
    def test_health(self, api_client):
        response = api_client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"] is True
        assert body["cache_backend"] == "memory"

    def test_metrics_exposition(self, api_client):
        api_client.get("/api/health")
        response = api_client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")


class TestTrainingRoutes:
    def test_create_and_get(self, api_client, setup):
        created = _create_training(api_client, setup, [setup["alice"].id])

        assert created["status"] == "PLANNED"
        assert created["price"] == 75.5
        assert created["gym_name"] == "Near Gym"
        assert created["client_ids"] == [setup["alice"].id]
        assert created["window"] is None

        fetched = api_client.get(f"/api/trainings/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["id"] == created["id"]

    def test_get_unknown_is_404(self, api_client):
        response = api_client.get("/api/trainings/missing")
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "TRAINING_NOT_FOUND"

    def test_create_rejects_unknown_fields(self, api_client, setup):
        response = api_client.post(
            "/api/trainings",
            json={
                "trainer_id": setup["trainer"].id,
                "room_id": setup["room"].id,
                "price": 10,
                "type": "Cardio",
                "unexpected": True,
            },
        )
        assert response.status_code == 422

    def test_place_window_and_conflict(self, api_client, setup):
        first = _create_training(api_client, setup)
        second = _create_training(api_client, setup)

        placed = _place(api_client, first["id"])
        assert placed.status_code == 200
        assert placed.json()["training_id"] == first["id"]

        conflict = _place(api_client, second["id"], start="10:30", end="11:30")
        assert conflict.status_code == 422
        detail = conflict.json()["detail"]
        assert detail["code"] == "BOOKING_CONFLICT"
        assert detail["message"] == "Trainer has a conflict"

        back_to_back = _place(api_client, second["id"], start="11:00", end="12:00")
        assert back_to_back.status_code == 200

    def test_malformed_time_is_400(self, api_client, setup):
        training = _create_training(api_client, setup)
        response = _place(api_client, training["id"], start="25:00")
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_TIME"

    def test_update_training(self, api_client, setup):
        training = _create_training(api_client, setup)
        response = api_client.patch(
            f"/api/trainings/{training['id']}", json={"type": "Pilates", "price": "20"}
        )
        assert response.status_code == 200
        assert response.json()["type"] == "Pilates"
        assert response.json()["price"] == 20.0

    def test_cancel_notice_policy(self, api_client, setup, clock):
        training = _create_training(api_client, setup, [setup["alice"].id])
        _place(api_client, training["id"])

        clock.set(datetime(2026, 3, 2, 9, 1))
        late = api_client.post(
            f"/api/trainings/{training['id']}/cancel", json={"client_id": setup["alice"].id}
        )
        assert late.status_code == 422
        assert late.json()["detail"]["code"] == "INSUFFICIENT_NOTICE"

        clock.set(datetime(2026, 3, 2, 8, 59))
        ok = api_client.post(
            f"/api/trainings/{training['id']}/cancel", json={"client_id": setup["alice"].id}
        )
        assert ok.status_code == 200
        assert ok.json()["status"] == "CANCELLED"

        again = api_client.post(f"/api/trainings/{training['id']}/cancel")
        assert again.status_code == 409
        assert again.json()["detail"]["code"] == "TRAINING_ALREADY_CANCELLED"

    def test_complete(self, api_client, setup):
        training = _create_training(api_client, setup, [setup["alice"].id])
        response = api_client.post(
            f"/api/trainings/{training['id']}/complete", json={"training_date": "2026-03-02"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["training"]["status"] == "COMPLETED"
        assert body["archived"][0]["client_id"] == setup["alice"].id
        assert body["archived"][0]["gym_name"] == "Near Gym"


class TestWindowAndScheduleRoutes:
    def test_free_window_lifecycle(self, api_client, setup):
        schedule_id = setup["alice"].schedule_id
        created = api_client.post(
            "/api/windows",
            json={
                "day_of_week": "Friday",
                "start_time": "08:00",
                "end_time": "12:00",
                "schedule_ids": [schedule_id],
            },
        )
        assert created.status_code == 201
        window_id = created.json()["id"]

        listed = api_client.get(f"/api/schedules/{schedule_id}/windows")
        assert listed.status_code == 200
        assert [w["id"] for w in listed.json()["windows"]] == [window_id]

        deleted = api_client.delete(f"/api/windows/{window_id}")
        assert deleted.status_code == 204
        assert api_client.get(f"/api/schedules/{schedule_id}/windows").json()["windows"] == []

    def test_free_window_requires_schedules(self, api_client):
        response = api_client.post(
            "/api/windows",
            json={
                "day_of_week": "Friday",
                "start_time": "08:00",
                "end_time": "12:00",
                "schedule_ids": [],
            },
        )
        assert response.status_code == 422

    def test_delete_schedule(self, api_client, setup):
        training = _create_training(api_client, setup)
        _place(api_client, training["id"])
        schedule_id = setup["trainer"].schedule_id

        response = api_client.delete(f"/api/schedules/{schedule_id}")

        assert response.status_code == 200
        assert response.json()["windows_removed"] == 1
        assert api_client.get(f"/api/schedules/{schedule_id}/windows").status_code == 404


class TestRecommendationRoutes:
    def _prepare_client(self, api_client, setup):
        alice = setup["alice"]
        assert api_client.put(
            f"/api/clients/{alice.id}/location",
            json={
                "street": "Home St",
                "building_number": "1",
                "zip_code": "00-001",
                "city": "Warszawa",
            },
        ).status_code == 200
        assert api_client.put(
            f"/api/clients/{alice.id}/preferences",
            json={"activity_level": "Moderate", "training_types": ["Cardio"]},
        ).status_code == 200
        assert api_client.post(
            "/api/windows",
            json={
                "day_of_week": "Monday",
                "start_time": "08:00",
                "end_time": "20:00",
                "schedule_ids": [alice.schedule_id],
            },
        ).status_code == 201
        return alice

    def test_recommendations_flow(self, api_client, setup):
        alice = self._prepare_client(api_client, setup)
        training = _create_training(api_client, setup)
        _place(api_client, training["id"])

        response = api_client.get(f"/api/recommendations/{alice.id}")

        assert response.status_code == 200
        results = response.json()["results"]
        assert [r["training"]["id"] for r in results] == [training["id"]]
        assert results[0]["distance_km"] == pytest.approx(1.0, abs=0.05)

        switched = api_client.put(
            f"/api/clients/{alice.id}/preferences",
            json={"activity_level": "High", "training_types": [TrainingType.POWERLIFTING.value]},
        )
        assert switched.status_code == 200
        assert api_client.get(f"/api/recommendations/{alice.id}").json()["results"] == []

    def test_recompute_and_invalidate(self, api_client, setup):
        alice = self._prepare_client(api_client, setup)
        assert api_client.post(f"/api/recommendations/{alice.id}/recompute").status_code == 200
        assert api_client.delete(f"/api/recommendations/{alice.id}").status_code == 204

    def test_unknown_client_is_404(self, api_client):
        response = api_client.get("/api/recommendations/missing")
        assert response.status_code == 404

    def test_geocoder_outage_is_503(self, api_client, setup, geocoder):
        alice = self._prepare_client(api_client, setup)
        geocoder.fail = True

        response = api_client.get(f"/api/recommendations/{alice.id}")

        assert response.status_code == 503
        assert response.headers["retry-after"] == "1"
