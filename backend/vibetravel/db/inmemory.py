"""In-memory implementations of repository interfaces."""

import uuid
from datetime import UTC, datetime
from typing import Any

from backend.vibetravel.db.context import RequestContext
from backend.vibetravel.db.repositories import AccessDenied, UniqueViolation
from backend.vibetravel.models.activity import ActivityEdit, PlanActivity
from backend.vibetravel.models.common import City, PlanSort, PlanStatus, TripIntensity
from backend.vibetravel.models.plan import FeedbackRecord, PlanRecord


class InMemoryPlanStore:
    """In-memory implementation of PlanStore."""

    def __init__(self) -> None:
        self._plans: dict[uuid.UUID, PlanRecord] = {}
        # activity_id -> (plan_id, activity)
        self._activities: dict[uuid.UUID, tuple[uuid.UUID, PlanActivity]] = {}
        self._feedback: dict[tuple[uuid.UUID, uuid.UUID], FeedbackRecord] = {}

    async def insert_plan(
        self,
        ctx: RequestContext,
        *,
        city_id: uuid.UUID,
        duration_days: int,
        trip_intensity: TripIntensity,
        notes: str | None,
        status: PlanStatus,
    ) -> PlanRecord:
        """Insert a plan record owned by the context user."""
        now = datetime.now(UTC)
        record = PlanRecord(
            id=uuid.uuid4(),
            user_id=ctx.user_id,
            city_id=city_id,
            duration_days=duration_days,
            trip_intensity=trip_intensity,
            notes=notes,
            status=status,
            is_archived=False,
            created_at=now,
            updated_at=now,
        )
        self._plans[record.id] = record
        return record

    async def insert_activities(
        self, plan_id: uuid.UUID, activities: list[PlanActivity]
    ) -> list[PlanActivity]:
        """Bulk insert activities for a plan."""
        inserted: list[PlanActivity] = []
        for activity in activities:
            activity_id = uuid.uuid4()
            row = activity.model_copy(update={"id": activity_id})
            self._activities[activity_id] = (plan_id, row)
            inserted.append(row)
        return inserted

    async def get_plan(self, plan_id: uuid.UUID, ctx: RequestContext) -> PlanRecord | None:
        """Get a visible plan by id."""
        record = self._plans.get(plan_id)

        if record is None or record.is_archived:
            return None

        # Enforce ownership
        if record.user_id != ctx.user_id:
            raise AccessDenied(f"Plan {plan_id} belongs to another user")

        return record

    async def list_activities(self, plan_id: uuid.UUID) -> list[PlanActivity]:
        """List a plan's activities ordered by day and position."""
        activities = [a for owner, a in self._activities.values() if owner == plan_id]
        activities.sort(key=lambda a: (a.day_number, a.position))
        return activities

    async def update_activity_position(
        self, plan_id: uuid.UUID, edit: ActivityEdit, ctx: RequestContext
    ) -> bool:
        """Move one activity to a new (day_number, position)."""
        entry = self._activities.get(edit.id)
        if entry is None:
            return False

        owner_plan_id, activity = entry
        plan = self._plans.get(owner_plan_id)

        # Scope to the given plan and to plans owned by the caller
        if owner_plan_id != plan_id or plan is None or plan.user_id != ctx.user_id:
            return False

        self._activities[edit.id] = (
            owner_plan_id,
            activity.model_copy(update={"day_number": edit.day_number, "position": edit.position}),
        )
        return True

    async def touch_plan(self, plan_id: uuid.UUID, ctx: RequestContext) -> None:
        """Set the plan's updated_at to now."""
        record = self._owned(plan_id, ctx)
        if record is not None:
            self._plans[plan_id] = record.model_copy(update={"updated_at": datetime.now(UTC)})

    async def archive_plan(self, plan_id: uuid.UUID, ctx: RequestContext) -> None:
        """Hide the plan from listing and fetch operations."""
        record = self._owned(plan_id, ctx)
        if record is not None:
            self._plans[plan_id] = record.model_copy(
                update={
                    "is_archived": True,
                    "status": PlanStatus.archived,
                    "updated_at": datetime.now(UTC),
                }
            )

    async def list_plans(self, ctx: RequestContext, sort: PlanSort) -> list[PlanRecord]:
        """List visible plans for the context user."""
        results = [
            record
            for record in self._plans.values()
            if record.user_id == ctx.user_id and not record.is_archived
        ]

        # Sort descending on the requested column
        results.sort(key=lambda r: getattr(r, PlanSort(sort).value), reverse=True)

        return results

    async def insert_feedback(
        self, plan_id: uuid.UUID, ctx: RequestContext, helpful: bool
    ) -> FeedbackRecord:
        """Record the context user's feedback on a plan."""
        key = (plan_id, ctx.user_id)
        if key in self._feedback:
            raise UniqueViolation(f"Feedback already exists for plan {plan_id}")

        record = FeedbackRecord(
            id=uuid.uuid4(),
            plan_id=plan_id,
            user_id=ctx.user_id,
            helpful=helpful,
            created_at=datetime.now(UTC),
        )
        self._feedback[key] = record
        return record

    async def get_feedback(
        self, plan_id: uuid.UUID, ctx: RequestContext
    ) -> FeedbackRecord | None:
        """Get the context user's feedback on a plan."""
        return self._feedback.get((plan_id, ctx.user_id))

    def _owned(self, plan_id: uuid.UUID, ctx: RequestContext) -> PlanRecord | None:
        record = self._plans.get(plan_id)
        if record is None:
            return None
        if record.user_id != ctx.user_id:
            raise AccessDenied(f"Plan {plan_id} belongs to another user")
        return record


class InMemoryCityRepository:
    """In-memory implementation of CityRepository."""

    def __init__(self, cities: list[City] | None = None) -> None:
        self._cities: dict[uuid.UUID, City] = {c.id: c for c in cities or []}

    async def get_city(self, city_id: uuid.UUID) -> City | None:
        """Get city by ID."""
        return self._cities.get(city_id)

    async def list_cities(self) -> list[City]:
        """List all cities ordered by name."""
        return sorted(self._cities.values(), key=lambda c: c.name)


class InMemoryErrorLogSink:
    """In-memory implementation of ErrorLogSink."""

    def __init__(self) -> None:
        self.app_errors: list[dict[str, Any]] = []
        self.llm_errors: list[dict[str, Any]] = []

    async def record_app_error(
        self,
        *,
        severity: str,
        message: str,
        user_id: uuid.UUID | None,
        plan_id: uuid.UUID | None,
        stack_trace: str | None,
        payload: dict[str, Any] | None,
    ) -> None:
        """Persist one application error entry."""
        self.app_errors.append(
            {
                "severity": severity,
                "message": message,
                "user_id": user_id,
                "plan_id": plan_id,
                "stack_trace": stack_trace,
                "payload": payload,
            }
        )

    async def record_llm_error(
        self,
        *,
        message: str,
        user_id: uuid.UUID | None,
        request_payload: dict[str, Any] | None,
        response_payload: dict[str, Any] | None,
    ) -> None:
        """Persist one generation error entry."""
        self.llm_errors.append(
            {
                "message": message,
                "user_id": user_id,
                "request_payload": request_payload,
                "response_payload": response_payload,
            }
        )
