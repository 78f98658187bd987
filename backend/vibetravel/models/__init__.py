"""Models package - re-exports for convenience."""

from backend.vibetravel.models.activity import ActivityEdit, DayActivities, PlanActivity
from backend.vibetravel.models.common import (
    ACTIVITIES_PER_DAY,
    MAX_GENERATED_POSITION,
    City,
    PlanSort,
    PlanStatus,
    TripIntensity,
    activities_per_day,
)
from backend.vibetravel.models.plan import (
    DraftPlan,
    FeedbackRecord,
    FeedbackRequest,
    GenerateDraftPlanRequest,
    GenerateDraftPlanResponse,
    ItineraryRequest,
    PlanRecord,
    PlanSummary,
    PlanWithActivities,
    SavePlanRequest,
    SavePlanResponse,
    UpdatePlanRequest,
)

__all__ = [
    # Common
    "TripIntensity",
    "PlanStatus",
    "PlanSort",
    "City",
    "ACTIVITIES_PER_DAY",
    "MAX_GENERATED_POSITION",
    "activities_per_day",
    # Activity
    "PlanActivity",
    "ActivityEdit",
    "DayActivities",
    # Plan
    "GenerateDraftPlanRequest",
    "GenerateDraftPlanResponse",
    "ItineraryRequest",
    "DraftPlan",
    "SavePlanRequest",
    "SavePlanResponse",
    "PlanRecord",
    "PlanWithActivities",
    "PlanSummary",
    "UpdatePlanRequest",
    # Feedback
    "FeedbackRequest",
    "FeedbackRecord",
]
