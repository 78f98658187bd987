"""Plan models - generation requests, drafts and persisted plans."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from backend.vibetravel.models.activity import ActivityEdit, PlanActivity
from backend.vibetravel.models.common import (
    MAX_DURATION_DAYS,
    MIN_DURATION_DAYS,
    City,
    PlanStatus,
    TripIntensity,
)

DurationDays = Annotated[int, Field(ge=MIN_DURATION_DAYS, le=MAX_DURATION_DAYS)]
UserNotes = Annotated[str, Field(max_length=500)]

DISCLAIMER = (
    "This itinerary was generated by AI. Opening hours, prices and locations may have "
    "changed - please verify important details before you travel."
)


class GenerateDraftPlanRequest(BaseModel):
    """Wizard input for draft generation."""

    city_id: UUID
    duration_days: DurationDays
    trip_intensity: TripIntensity
    user_notes: UserNotes | None = None


class ItineraryRequest(BaseModel):
    """Structured request handed to the generation provider."""

    city_id: UUID
    city_name: str = Field(..., min_length=1)
    duration_days: DurationDays
    trip_intensity: TripIntensity
    user_notes: UserNotes | None = None


class DraftPlan(BaseModel):
    """Generated plan that lives only in the client's working memory."""

    city_id: UUID
    duration_days: DurationDays
    trip_intensity: TripIntensity
    user_notes: UserNotes | None = None
    activities: Annotated[list[PlanActivity], Field(min_length=1)]
    disclaimer: str = DISCLAIMER


class GenerateDraftPlanResponse(BaseModel):
    """Response for POST /plans/generate."""

    plan: DraftPlan


class SavePlanRequest(BaseModel):
    """Finalized draft submitted for durable persistence."""

    city_id: UUID
    duration_days: DurationDays
    trip_intensity: TripIntensity
    user_notes: UserNotes | None = None
    activities: Annotated[list[PlanActivity], Field(min_length=1)]

    @model_validator(mode="after")
    def validate_days_within_duration(self) -> "SavePlanRequest":
        """Ensure no activity is scheduled past the last day."""
        for activity in self.activities:
            if activity.day_number > self.duration_days:
                raise ValueError(
                    "All activities must have day_number less than or equal to duration_days"
                )
        return self

    @classmethod
    def from_draft(cls, draft: DraftPlan, activities: list[PlanActivity]) -> "SavePlanRequest":
        """Build a save request from a draft and the edited activities."""
        return cls(
            city_id=draft.city_id,
            duration_days=draft.duration_days,
            trip_intensity=draft.trip_intensity,
            user_notes=draft.user_notes,
            activities=activities,
        )


class PlanRecord(BaseModel):
    """Persisted plan row."""

    id: UUID
    user_id: UUID
    city_id: UUID
    duration_days: int
    trip_intensity: TripIntensity
    notes: str | None
    status: PlanStatus
    is_archived: bool
    created_at: datetime
    updated_at: datetime


class PlanWithActivities(BaseModel):
    """Plan plus its activities ordered by day and position."""

    plan: PlanRecord
    activities: list[PlanActivity]


class SavePlanResponse(BaseModel):
    """Response for POST /plans."""

    id: UUID
    status: PlanStatus
    created_at: datetime
    updated_at: datetime


class PlanSummary(BaseModel):
    """Plan as shown on the dashboard list."""

    id: UUID
    city: City | None
    duration_days: int
    trip_intensity: TripIntensity
    status: PlanStatus
    created_at: datetime
    updated_at: datetime


class UpdatePlanRequest(BaseModel):
    """Request body for PATCH /plans/{plan_id}."""

    activities: list[ActivityEdit]


class FeedbackRequest(BaseModel):
    """Request body for POST /plans/{plan_id}/feedback."""

    helpful: bool


class FeedbackRecord(BaseModel):
    """Persisted feedback row."""

    id: UUID
    plan_id: UUID
    user_id: UUID
    helpful: bool
    created_at: datetime
