"""Tests for plan and activity request models."""

import uuid
from collections.abc import Callable

import pytest
from pydantic import ValidationError

from backend.vibetravel.models.activity import PlanActivity
from backend.vibetravel.models.common import TripIntensity, activities_per_day
from backend.vibetravel.models.plan import (
    DraftPlan,
    GenerateDraftPlanRequest,
    SavePlanRequest,
)

MakeActivity = Callable[..., PlanActivity]


def test_activities_per_day() -> None:
    """Full days plan five activities, half days three."""
    assert activities_per_day(TripIntensity.full_day) == 5
    assert activities_per_day(TripIntensity("half day")) == 3


@pytest.mark.parametrize("duration_days", [0, 6])
def test_generate_request_duration_bounds(duration_days: int) -> None:
    """Trips last one to five days."""
    with pytest.raises(ValidationError):
        GenerateDraftPlanRequest(
            city_id=uuid.uuid4(),
            duration_days=duration_days,
            trip_intensity=TripIntensity.full_day,
        )


def test_generate_request_notes_are_bounded() -> None:
    """User notes are capped at 500 characters."""
    with pytest.raises(ValidationError):
        GenerateDraftPlanRequest(
            city_id=uuid.uuid4(),
            duration_days=2,
            trip_intensity=TripIntensity.half_day,
            user_notes="x" * 501,
        )


def test_generate_request_rejects_unknown_intensity() -> None:
    """Intensity is one of the two enumerated values."""
    with pytest.raises(ValidationError):
        GenerateDraftPlanRequest(
            city_id=uuid.uuid4(), duration_days=2, trip_intensity="all night"
        )


def test_empty_activity_id_is_treated_as_missing() -> None:
    """An empty string id means not yet persisted."""
    activity = PlanActivity(id="", day_number=1, position=1, name="Colosseum")

    assert activity.id is None


def test_save_request_rejects_days_past_duration(make_activity: MakeActivity) -> None:
    """No activity may be scheduled after the last day."""
    with pytest.raises(ValidationError, match="day_number"):
        SavePlanRequest(
            city_id=uuid.uuid4(),
            duration_days=1,
            trip_intensity=TripIntensity.full_day,
            activities=[make_activity(1, 1), make_activity(2, 1)],
        )


def test_save_request_requires_activities() -> None:
    """A plan without activities cannot be saved."""
    with pytest.raises(ValidationError):
        SavePlanRequest(
            city_id=uuid.uuid4(),
            duration_days=1,
            trip_intensity=TripIntensity.full_day,
            activities=[],
        )


def test_save_request_from_draft(make_activity: MakeActivity) -> None:
    """Draft metadata is carried over with the edited activities."""
    draft = DraftPlan(
        city_id=uuid.uuid4(),
        duration_days=2,
        trip_intensity=TripIntensity.half_day,
        user_notes="No museums",
        activities=[make_activity(1, 1, with_id=False), make_activity(2, 1, with_id=False)],
    )
    edited = [make_activity(1, 1)]

    request = SavePlanRequest.from_draft(draft, edited)

    assert request.city_id == draft.city_id
    assert request.user_notes == "No museums"
    assert request.activities == edited
    assert "AI" in draft.disclaimer
