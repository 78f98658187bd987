"""Tests for /plans and /cities endpoints over in-memory stores."""

import uuid
from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from backend.vibetravel.api.dependencies import (
    get_city_repository,
    get_draft_plan_service,
    get_plan_store,
)
from backend.vibetravel.db.inmemory import InMemoryCityRepository, InMemoryPlanStore
from backend.vibetravel.db.repositories import StoreError
from backend.vibetravel.generation.adapter import DraftGenerationAdapter
from backend.vibetravel.main import app
from backend.vibetravel.models.activity import PlanActivity
from backend.vibetravel.models.common import City
from backend.vibetravel.models.plan import ItineraryRequest
from backend.vibetravel.services.generation import DraftPlanService

USER_A = uuid.UUID("00000000-0000-0000-0000-00000000000a")
USER_B = uuid.UUID("00000000-0000-0000-0000-00000000000b")

AUTH_A = {"Authorization": f"Bearer {USER_A}"}
AUTH_B = {"Authorization": f"Bearer {USER_B}"}


class RejectingProvider:
    """Provider that always declines the request."""

    async def complete(self, prompt: str, request: ItineraryRequest) -> str:
        return "Request rejected by AI"


class FailingActivitiesStore(InMemoryPlanStore):
    """Plan inserts succeed, activity inserts fail."""

    async def insert_activities(
        self, plan_id: uuid.UUID, activities: list[PlanActivity]
    ) -> list[PlanActivity]:
        raise StoreError("connection reset")


@pytest.fixture
def cities(paris: City) -> InMemoryCityRepository:
    """City repository with Paris and Rome."""
    return InMemoryCityRepository([paris, City(id=uuid.uuid4(), name="Rome")])


@pytest.fixture
def client(cities: InMemoryCityRepository) -> Iterator[TestClient]:
    """Test client with in-memory stores shared across requests."""
    store = InMemoryPlanStore()
    app.dependency_overrides[get_plan_store] = lambda: store
    app.dependency_overrides[get_city_repository] = lambda: cities

    yield TestClient(app)

    app.dependency_overrides.clear()


def _generate(client: TestClient, city_id: uuid.UUID, **overrides: Any) -> Any:
    body = {"city_id": str(city_id), "duration_days": 3, "trip_intensity": "full day"}
    body.update(overrides)
    return client.post("/plans/generate", json=body, headers=AUTH_A)


def _save_generated(client: TestClient, paris: City) -> dict[str, Any]:
    draft = _generate(client, paris.id).json()["plan"]
    response = client.post(
        "/plans",
        json={
            "city_id": draft["city_id"],
            "duration_days": draft["duration_days"],
            "trip_intensity": draft["trip_intensity"],
            "user_notes": draft["user_notes"],
            "activities": draft["activities"],
        },
        headers=AUTH_A,
    )
    assert response.status_code == 201
    return response.json()


def test_list_cities(client: TestClient) -> None:
    """Cities are listed by name."""
    response = client.get("/cities")

    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == ["Paris", "Rome"]


def test_generate_returns_unsaved_draft(client: TestClient, paris: City) -> None:
    """Three full days produce fifteen activities without ids."""
    response = _generate(client, paris.id, user_notes="Art and food")

    assert response.status_code == 200
    plan = response.json()["plan"]
    assert plan["city_id"] == str(paris.id)
    assert plan["user_notes"] == "Art and food"
    assert plan["disclaimer"]
    assert len(plan["activities"]) == 15
    assert all(a["id"] is None for a in plan["activities"])


def test_generate_unknown_city_is_404(client: TestClient) -> None:
    """Generation needs a known destination."""
    response = _generate(client, uuid.uuid4())

    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


@pytest.mark.parametrize(
    "overrides",
    [
        {"duration_days": 6},
        {"duration_days": 0},
        {"trip_intensity": "all night"},
        {"user_notes": "x" * 501},
    ],
)
def test_generate_invalid_input_is_400(
    client: TestClient, paris: City, overrides: dict[str, Any]
) -> None:
    """Out-of-range wizard input is rejected before generation."""
    response = _generate(client, paris.id, **overrides)

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_generate_rejected_request_is_422(
    client: TestClient, cities: InMemoryCityRepository, paris: City
) -> None:
    """A declined request surfaces as a generation failure."""
    app.dependency_overrides[get_draft_plan_service] = lambda: DraftPlanService(
        cities, DraftGenerationAdapter(RejectingProvider())
    )

    response = _generate(client, paris.id)

    assert response.status_code == 422
    assert response.json()["error"] == "GENERATION_FAILED"
    assert response.json()["message"] == "Request rejected by AI"


def test_save_list_and_get_plan(client: TestClient, paris: City) -> None:
    """A saved draft shows up in the list and loads with dense positions."""
    saved = _save_generated(client, paris)
    assert saved["status"] == "active"

    listed = client.get("/plans", headers=AUTH_A).json()
    assert [p["id"] for p in listed] == [saved["id"]]
    assert listed[0]["city"]["name"] == "Paris"

    loaded = client.get(f"/plans/{saved['id']}", headers=AUTH_A).json()
    activities = loaded["activities"]
    assert len(activities) == 15
    assert all(a["id"] for a in activities)
    for day in (1, 2, 3):
        positions = [a["position"] for a in activities if a["day_number"] == day]
        assert positions == [1, 2, 3, 4, 5]


def test_save_rejects_activity_past_last_day(
    client: TestClient, paris: City, make_activity: Any
) -> None:
    """Activities scheduled after duration_days are a validation error."""
    response = client.post(
        "/plans",
        json={
            "city_id": str(paris.id),
            "duration_days": 1,
            "trip_intensity": "half day",
            "activities": [make_activity(2, 1, with_id=False).model_dump(mode="json")],
        },
        headers=AUTH_A,
    )

    assert response.status_code == 400


def test_save_partial_failure_is_generic_500(client: TestClient, paris: City) -> None:
    """A plan written without its activities surfaces as a plain failed save."""
    draft = _generate(client, paris.id).json()["plan"]
    failing_store = FailingActivitiesStore()
    app.dependency_overrides[get_plan_store] = lambda: failing_store

    response = client.post(
        "/plans",
        json={
            "city_id": draft["city_id"],
            "duration_days": draft["duration_days"],
            "trip_intensity": draft["trip_intensity"],
            "activities": draft["activities"],
        },
        headers=AUTH_A,
    )

    assert response.status_code == 500
    assert response.json() == {
        "error": "PERSISTENCE_ERROR",
        "message": "Failed to save plan",
        "details": {},
    }
    assert "plan_id" not in response.text
    assert "connection reset" not in response.text


def test_list_plans_rejects_unknown_sort(client: TestClient) -> None:
    """Only the documented sort columns are accepted."""
    response = client.get("/plans", params={"sort": "name"}, headers=AUTH_A)

    assert response.status_code == 400


def test_update_swaps_positions(client: TestClient, paris: City) -> None:
    """PATCH applies the new slots and returns the reordered plan."""
    saved = _save_generated(client, paris)
    activities = client.get(f"/plans/{saved['id']}", headers=AUTH_A).json()["activities"]
    first, second = activities[0], activities[1]

    response = client.patch(
        f"/plans/{saved['id']}",
        json={
            "activities": [
                {"id": first["id"], "day_number": 1, "position": 2},
                {"id": second["id"], "day_number": 1, "position": 1},
            ]
        },
        headers=AUTH_A,
    )

    assert response.status_code == 200
    reordered = response.json()["activities"]
    assert [reordered[0]["id"], reordered[1]["id"]] == [second["id"], first["id"]]


def test_update_duplicate_position_is_400(client: TestClient, paris: City) -> None:
    """Two edits on the same slot are rejected."""
    saved = _save_generated(client, paris)
    activities = client.get(f"/plans/{saved['id']}", headers=AUTH_A).json()["activities"]

    response = client.patch(
        f"/plans/{saved['id']}",
        json={
            "activities": [
                {"id": activities[0]["id"], "day_number": 1, "position": 1},
                {"id": activities[1]["id"], "day_number": 1, "position": 1},
            ]
        },
        headers=AUTH_A,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "DUPLICATE_POSITION"


def test_update_day_past_duration_is_400(client: TestClient, paris: City) -> None:
    """Moving an activity past the last day leaves the plan untouched."""
    saved = _save_generated(client, paris)
    before = client.get(f"/plans/{saved['id']}", headers=AUTH_A).json()["activities"]

    response = client.patch(
        f"/plans/{saved['id']}",
        json={"activities": [{"id": before[0]["id"], "day_number": 9, "position": 1}]},
        headers=AUTH_A,
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["details"]["field"] == "activities"
    after = client.get(f"/plans/{saved['id']}", headers=AUTH_A).json()["activities"]
    assert after == before


def test_update_empty_batch_is_400(client: TestClient, paris: City) -> None:
    """A PATCH without edits is rejected."""
    saved = _save_generated(client, paris)

    response = client.patch(f"/plans/{saved['id']}", json={"activities": []}, headers=AUTH_A)

    assert response.status_code == 400
    assert response.json()["error"] == "NO_UPDATES_PROVIDED"


def test_other_user_is_forbidden(client: TestClient, paris: City) -> None:
    """Plans are visible to their owner only."""
    saved = _save_generated(client, paris)

    assert client.get(f"/plans/{saved['id']}", headers=AUTH_B).status_code == 403
    assert client.delete(f"/plans/{saved['id']}", headers=AUTH_B).status_code == 403
    assert client.get("/plans", headers=AUTH_B).json() == []


def test_archive_then_get_is_404(client: TestClient, paris: City) -> None:
    """DELETE archives; the plan is gone from reads afterwards."""
    saved = _save_generated(client, paris)

    response = client.delete(f"/plans/{saved['id']}", headers=AUTH_A)

    assert response.status_code == 204
    assert client.get(f"/plans/{saved['id']}", headers=AUTH_A).status_code == 404
    assert client.get("/plans", headers=AUTH_A).json() == []


def test_feedback_lifecycle(client: TestClient, paris: City) -> None:
    """Feedback is accepted once, then reported and refused."""
    saved = _save_generated(client, paris)
    url = f"/plans/{saved['id']}/feedback"

    assert client.get(url, headers=AUTH_A).json() == {"has_feedback": False}

    created = client.post(url, json={"helpful": True}, headers=AUTH_A)
    assert created.status_code == 201
    assert "id" in created.json()

    assert client.get(url, headers=AUTH_A).json() == {"has_feedback": True}

    again = client.post(url, json={"helpful": False}, headers=AUTH_A)
    assert again.status_code == 409
    assert again.json()["error"] == "ALREADY_SUBMITTED"


def test_invalid_bearer_token_is_401(client: TestClient) -> None:
    """A bearer token that is not a user id is refused."""
    response = client.get("/plans", headers={"Authorization": "Bearer not-a-uuid"})

    assert response.status_code == 401
