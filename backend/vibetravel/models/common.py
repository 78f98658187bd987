"""Common types and enums shared across all models."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class TripIntensity(str, Enum):
    """How packed each day of the trip is."""

    full_day = "full day"
    half_day = "half day"


class PlanStatus(str, Enum):
    """Plan workflow status."""

    draft = "draft"
    active = "active"
    archived = "archived"


class PlanSort(str, Enum):
    """Sortable plan columns for listing (always descending)."""

    created_at = "created_at"
    updated_at = "updated_at"
    duration_days = "duration_days"


ACTIVITIES_PER_DAY: dict[TripIntensity, int] = {
    TripIntensity.full_day: 5,
    TripIntensity.half_day: 3,
}

# Upper bound for a generated position before renumbering; one slot of slack
# above the full-day count.
MAX_GENERATED_POSITION = 6

MIN_DURATION_DAYS = 1
MAX_DURATION_DAYS = 5


def activities_per_day(intensity: TripIntensity) -> int:
    """Number of activities the provider is asked to produce per day."""
    return ACTIVITIES_PER_DAY[TripIntensity(intensity)]


class City(BaseModel):
    """Destination city available in the wizard."""

    id: UUID
    name: str
