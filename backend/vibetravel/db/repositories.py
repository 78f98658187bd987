"""Repository protocol interfaces for data access."""

from typing import Any, Protocol
from uuid import UUID

from backend.vibetravel.db.context import RequestContext
from backend.vibetravel.models.activity import ActivityEdit, PlanActivity
from backend.vibetravel.models.common import City, PlanSort, PlanStatus, TripIntensity
from backend.vibetravel.models.plan import FeedbackRecord, PlanRecord


class StoreError(Exception):
    """Store operation failed."""

    pass


class AccessDenied(StoreError):
    """Record exists but is owned by a different user."""

    pass


class UniqueViolation(StoreError):
    """Insert collided with a uniqueness constraint."""

    pass


class PlanStore(Protocol):
    """Store for plans, their activities and feedback.

    Every call commits on its own; there is no transaction spanning calls.
    Ownership is enforced here: operations on another user's plan raise
    AccessDenied, unknown or archived plans read as missing.
    """

    async def insert_plan(
        self,
        ctx: RequestContext,
        *,
        city_id: UUID,
        duration_days: int,
        trip_intensity: TripIntensity,
        notes: str | None,
        status: PlanStatus,
    ) -> PlanRecord:
        """Insert a plan record owned by the context user.

        Returns:
            The persisted plan with its assigned id

        Raises:
            StoreError: If the insert fails
        """
        ...

    async def insert_activities(
        self, plan_id: UUID, activities: list[PlanActivity]
    ) -> list[PlanActivity]:
        """Bulk insert activities for a plan; incoming ids are ignored.

        Returns:
            Persisted activities with their assigned ids

        Raises:
            StoreError: If the insert fails (nothing is written)
        """
        ...

    async def get_plan(self, plan_id: UUID, ctx: RequestContext) -> PlanRecord | None:
        """Get a visible plan by id.

        Returns:
            Plan record, or None if missing or archived

        Raises:
            AccessDenied: If the plan belongs to another user
        """
        ...

    async def list_activities(self, plan_id: UUID) -> list[PlanActivity]:
        """List a plan's activities ordered by day_number, then position."""
        ...

    async def update_activity_position(
        self, plan_id: UUID, edit: ActivityEdit, ctx: RequestContext
    ) -> bool:
        """Move one activity to a new (day_number, position).

        The update is scoped to ``plan_id`` and to plans owned by the context
        user.

        Returns:
            False if no row matched the scope
        """
        ...

    async def touch_plan(self, plan_id: UUID, ctx: RequestContext) -> None:
        """Set the plan's updated_at to now."""
        ...

    async def archive_plan(self, plan_id: UUID, ctx: RequestContext) -> None:
        """Hide the plan from listing and fetch operations."""
        ...

    async def list_plans(self, ctx: RequestContext, sort: PlanSort) -> list[PlanRecord]:
        """List visible plans for the context user, sorted descending."""
        ...

    async def insert_feedback(
        self, plan_id: UUID, ctx: RequestContext, helpful: bool
    ) -> FeedbackRecord:
        """Record the context user's feedback on a plan.

        Raises:
            UniqueViolation: If the user already left feedback on this plan
        """
        ...

    async def get_feedback(self, plan_id: UUID, ctx: RequestContext) -> FeedbackRecord | None:
        """Get the context user's feedback on a plan, if any."""
        ...


class CityRepository(Protocol):
    """Read-only access to destination cities."""

    async def get_city(self, city_id: UUID) -> City | None:
        """Get city by ID."""
        ...

    async def list_cities(self) -> list[City]:
        """List all cities ordered by name."""
        ...


class ErrorLogSink(Protocol):
    """Durable destination for error log entries."""

    async def record_app_error(
        self,
        *,
        severity: str,
        message: str,
        user_id: UUID | None,
        plan_id: UUID | None,
        stack_trace: str | None,
        payload: dict[str, Any] | None,
    ) -> None:
        """Persist one application error entry."""
        ...

    async def record_llm_error(
        self,
        *,
        message: str,
        user_id: UUID | None,
        request_payload: dict[str, Any] | None,
        response_payload: dict[str, Any] | None,
    ) -> None:
        """Persist one generation error entry."""
        ...
