"""Itinerary edit session - in-memory working copy with dirty tracking.

The session owns two activity lists: the baseline captured at load (or at the
last successful save) and the working copy the user mutates. It is driven by
a single interactive actor; nothing here is safe for concurrent mutation.

States:
    viewing  -> set_editing(True)  -> editing
    editing  -> set_editing(False) -> viewing
    editing  -> cancel()           -> viewing (working copy reverted)
"""

import logging
from collections.abc import Sequence
from uuid import UUID

from backend.vibetravel.errors import SessionNotEditing
from backend.vibetravel.itinerary.ordering import (
    assign_missing_ids,
    group_by_day,
    ordering_key,
    renumber,
)
from backend.vibetravel.models.activity import ActivityEdit, DayActivities, PlanActivity
from backend.vibetravel.models.plan import DraftPlan, PlanWithActivities

logger = logging.getLogger(__name__)


class ItineraryEditSession:
    """Working copy of a plan's activities plus its committed baseline."""

    def __init__(
        self, activities: Sequence[PlanActivity], *, is_editing: bool | None = None
    ) -> None:
        """Start a session over the given activities.

        Args:
            activities: Initial activities; unsaved ones may lack an id
            is_editing: Initial mode. Defaults to editing when any activity is
                unsaved (a fresh draft), viewing otherwise.
        """
        if is_editing is None:
            is_editing = any(a.id is None for a in activities)

        # Ids are fixed once here so baseline and working copy agree on identity
        baseline = assign_missing_ids(activities)
        self._original: list[PlanActivity] = baseline
        self._current: list[PlanActivity] = list(baseline)
        self._is_editing = is_editing

    @classmethod
    def from_draft(cls, draft: DraftPlan) -> "ItineraryEditSession":
        """Session over a freshly generated draft; starts in editing mode."""
        return cls(draft.activities, is_editing=True)

    @classmethod
    def from_plan(cls, plan: PlanWithActivities) -> "ItineraryEditSession":
        """Session over a persisted plan; starts in viewing mode."""
        return cls(plan.activities, is_editing=False)

    @property
    def current_activities(self) -> list[PlanActivity]:
        return list(self._current)

    @property
    def original_activities(self) -> list[PlanActivity]:
        return list(self._original)

    @property
    def is_editing(self) -> bool:
        return self._is_editing

    @property
    def is_dirty(self) -> bool:
        """True when the working copy's identity set or placement differs."""
        if len(self._current) != len(self._original):
            return True
        return ordering_key(self._current) != ordering_key(self._original)

    @property
    def days(self) -> list[DayActivities]:
        """Working copy grouped by day for rendering."""
        return group_by_day(self._current)

    def set_editing(self, is_editing: bool) -> None:
        self._is_editing = is_editing

    def move_up(self, activity_id: UUID) -> None:
        """Swap an activity with its predecessor in the same day.

        No-op when the activity is unknown or already first in its day.
        """
        self._require_editing("move up")
        self._swap_with_neighbour(activity_id, direction=-1)

    def move_down(self, activity_id: UUID) -> None:
        """Swap an activity with its successor in the same day.

        No-op when the activity is unknown or already last in its day.
        """
        self._require_editing("move down")
        self._swap_with_neighbour(activity_id, direction=1)

    def delete(self, activity_id: UUID) -> None:
        """Remove an activity and close the gap it leaves in its day.

        Unknown ids leave the session untouched.
        """
        self._require_editing("delete")

        remaining = [a for a in self._current if a.id != activity_id]
        if len(remaining) == len(self._current):
            return

        self._current = renumber(remaining)

    def cancel(self) -> None:
        """Discard the working copy and leave editing mode."""
        self._current = list(self._original)
        self._is_editing = False

    def commit(self, new_baseline: Sequence[PlanActivity]) -> None:
        """Adopt the activities returned by a successful save as the baseline."""
        baseline = assign_missing_ids(new_baseline)
        self._original = baseline
        self._current = list(baseline)

    def to_edits(self) -> list[ActivityEdit]:
        """Working copy as (id, day_number, position) edits for persistence."""
        # Every activity carries an id from __init__/commit onwards
        return [
            ActivityEdit(id=a.id, day_number=a.day_number, position=a.position)
            for a in self._current
            if a.id is not None
        ]

    def _require_editing(self, operation: str) -> None:
        if not self._is_editing:
            raise SessionNotEditing(operation)

    def _swap_with_neighbour(self, activity_id: UUID, direction: int) -> None:
        activity = next((a for a in self._current if a.id == activity_id), None)
        if activity is None:
            logger.debug(f"Ignoring move of unknown activity {activity_id}")
            return

        same_day = [
            a for a in self._current if a.day_number == activity.day_number and a.id != activity_id
        ]
        if direction < 0:
            candidates = [a for a in same_day if a.position < activity.position]
            neighbour = max(candidates, key=lambda a: a.position, default=None)
        else:
            candidates = [a for a in same_day if a.position > activity.position]
            neighbour = min(candidates, key=lambda a: a.position, default=None)

        if neighbour is None:
            return

        swapped = {
            activity.id: activity.model_copy(update={"position": neighbour.position}),
            neighbour.id: neighbour.model_copy(update={"position": activity.position}),
        }
        self._current = [swapped.get(a.id, a) for a in self._current]
