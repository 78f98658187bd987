"""Activity models - one scheduled item anchored to a day and position."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class PlanActivity(BaseModel):
    """Single activity within a plan.

    ``id`` is ``None`` for activities that came out of generation and have not
    been persisted yet.
    """

    id: UUID | None = None
    day_number: int = Field(..., ge=1)
    position: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=255)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    google_maps_url: str | None = None
    notes: str | None = Field(None, max_length=500)

    @field_validator("id", mode="before")
    @classmethod
    def empty_id_is_missing(cls, v: Any) -> Any:
        """Treat an empty identifier the same as a missing one."""
        if v == "":
            return None
        return v


class ActivityEdit(BaseModel):
    """New (day, position) assignment for a persisted activity."""

    id: UUID
    day_number: int = Field(..., ge=1)
    position: int = Field(..., ge=1)


class DayActivities(BaseModel):
    """Activities of a single day, sorted by position."""

    day_number: int
    activities: list[PlanActivity]
