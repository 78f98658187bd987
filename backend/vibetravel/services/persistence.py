"""Plan persistence orchestrator: two-collection writes without transactions.

A plan and its activities live in separate collections and every store call
commits on its own. The orchestrator sequences those calls, validates
everything it can before the first write, and turns store failures into
typed errors:

- create: plan insert, then one bulk activity insert. A failure of the second
  step leaves an activity-less plan behind and raises
  PersistencePartialFailure; no compensating delete is attempted.
- update: sequential per-activity position updates. Earlier updates in the
  batch are never rolled back when a later one fails.
- archive: soft delete through the is_archived flag.
"""

import logging
from collections.abc import Sequence
from typing import Any
from uuid import UUID

from backend.vibetravel.db.context import RequestContext
from backend.vibetravel.db.repositories import (
    AccessDenied,
    CityRepository,
    PlanStore,
    StoreError,
    UniqueViolation,
)
from backend.vibetravel.errors import (
    AlreadySubmitted,
    DuplicatePosition,
    Forbidden,
    NoUpdatesProvided,
    NotFound,
    NotFoundOrForbidden,
    PersistenceError,
    PersistencePartialFailure,
    ValidationError,
)
from backend.vibetravel.itinerary.ordering import find_density_violations, renumber
from backend.vibetravel.models.activity import ActivityEdit
from backend.vibetravel.models.common import City, PlanSort, PlanStatus
from backend.vibetravel.models.plan import (
    FeedbackRecord,
    PlanRecord,
    PlanSummary,
    PlanWithActivities,
    SavePlanRequest,
    SavePlanResponse,
)
from backend.vibetravel.utils.logging import StructuredErrorLogger
from backend.vibetravel.utils.metrics import PrometheusPlannerMetrics

logger = logging.getLogger(__name__)


def find_duplicate_slot(edits: Sequence[ActivityEdit]) -> tuple[int, int] | None:
    """Return the first (day_number, position) claimed by two edits, if any."""
    seen: set[tuple[int, int]] = set()
    for edit in edits:
        slot = (edit.day_number, edit.position)
        if slot in seen:
            return slot
        seen.add(slot)
    return None


class PlanPersistenceOrchestrator:
    """Create, update, archive and read plans through a PlanStore."""

    def __init__(
        self,
        store: PlanStore,
        cities: CityRepository | None = None,
        error_logger: StructuredErrorLogger | None = None,
        metrics: PrometheusPlannerMetrics | None = None,
    ) -> None:
        self._store = store
        self._cities = cities
        self._error_logger = error_logger or StructuredErrorLogger()
        self._metrics = metrics or PrometheusPlannerMetrics()

    async def create(self, ctx: RequestContext, request: SavePlanRequest) -> SavePlanResponse:
        """Persist a finalized draft as an active plan.

        Args:
            ctx: Request context of the owning user
            request: Draft metadata and its edited activities

        Returns:
            Id, status and timestamps of the new plan

        Raises:
            ValidationError: If the request is inconsistent (nothing written)
            PersistenceError: If the plan insert failed (nothing written)
            PersistencePartialFailure: If the plan was written but its
                activities were not
        """
        self._validate_save_request(request)

        sparse_days = find_density_violations(request.activities)
        if sparse_days:
            logger.warning(
                f"Renumbering non-dense days before save: {sparse_days}",
                extra={"structured": {"user_id": str(ctx.user_id), "days": sparse_days}},
            )
        activities = renumber(request.activities)
        payload = request.model_dump(mode="json")

        try:
            plan = await self._store.insert_plan(
                ctx,
                city_id=request.city_id,
                duration_days=request.duration_days,
                trip_intensity=request.trip_intensity,
                notes=request.user_notes,
                status=PlanStatus.active,
            )
        except StoreError as e:
            self._metrics.inc_persistence_error("create", "plan_insert")
            await self._error_logger.log_app_error(
                f"Failed to insert plan: {e}",
                user_id=ctx.user_id,
                payload=payload,
                exc=e,
            )
            raise PersistenceError("Failed to create plan") from e

        try:
            await self._store.insert_activities(plan.id, activities)
        except StoreError as e:
            self._metrics.inc_persistence_error("create", "partial")
            await self._error_logger.log_app_error(
                f"Failed to insert activities for plan {plan.id}: {e}",
                user_id=ctx.user_id,
                plan_id=plan.id,
                payload={**payload, "plan_id": str(plan.id)},
                exc=e,
            )
            raise PersistencePartialFailure(str(plan.id), str(e)) from e

        logger.info(
            f"Plan created: {plan.id}",
            extra={
                "structured": {
                    "plan_id": str(plan.id),
                    "user_id": str(ctx.user_id),
                    "activities": len(activities),
                }
            },
        )

        return SavePlanResponse(
            id=plan.id,
            status=plan.status,
            created_at=plan.created_at,
            updated_at=plan.updated_at,
        )

    async def update(
        self, ctx: RequestContext, plan_id: UUID, edits: Sequence[ActivityEdit]
    ) -> PlanWithActivities:
        """Apply new (day_number, position) assignments to a plan's activities.

        The batch is validated in full before the first write. Writes are
        applied one by one and are not rolled back on a later failure.

        Args:
            ctx: Request context of the owning user
            plan_id: Plan whose activities are edited
            edits: One entry per moved activity

        Returns:
            The plan with its activities after the update

        Raises:
            NoUpdatesProvided: If edits is empty
            DuplicatePosition: If two edits target the same slot
            NotFound: If the plan is missing or archived
            Forbidden: If the plan belongs to another user
            ValidationError: If an edit moves an activity past the last day
            NotFoundOrForbidden: If an activity is not part of the plan
            PersistenceError: If the store failed mid-batch
        """
        if not edits:
            raise NoUpdatesProvided()

        duplicate = find_duplicate_slot(edits)
        if duplicate is not None:
            day_number, position = duplicate
            await self._error_logger.log_app_error(
                "Duplicate activity position within a day",
                severity="warning",
                user_id=ctx.user_id,
                plan_id=plan_id,
                payload={"activities": [e.model_dump(mode="json") for e in edits]},
            )
            raise DuplicatePosition(day_number, position)

        plan = await self._require_plan(ctx, plan_id)

        past_last_day = [e for e in edits if e.day_number > plan.duration_days]
        if past_last_day:
            await self._error_logger.log_app_error(
                "Activity day outside plan duration",
                severity="warning",
                user_id=ctx.user_id,
                plan_id=plan_id,
                payload={"activities": [e.model_dump(mode="json") for e in past_last_day]},
            )
            raise ValidationError(
                "All activities must have day_number less than or equal to duration_days",
                field="activities",
                details={
                    "activity_id": str(past_last_day[0].id),
                    "day_number": past_last_day[0].day_number,
                    "duration_days": plan.duration_days,
                },
            )

        applied = 0
        for edit in edits:
            try:
                matched = await self._store.update_activity_position(plan_id, edit, ctx)
            except StoreError as e:
                self._metrics.inc_persistence_error("update", "store")
                await self._error_logger.log_app_error(
                    f"Failed to update activity {edit.id}: {e}",
                    user_id=ctx.user_id,
                    plan_id=plan_id,
                    payload=self._batch_payload(edits, applied),
                    exc=e,
                )
                raise PersistenceError(f"Failed to update activity {edit.id}") from e

            if not matched:
                self._metrics.inc_persistence_error("update", "not_found")
                await self._error_logger.log_app_error(
                    f"Activity not found or unauthorized: {edit.id}",
                    severity="warning",
                    user_id=ctx.user_id,
                    plan_id=plan_id,
                    payload=self._batch_payload(edits, applied),
                )
                raise NotFoundOrForbidden(str(edit.id), str(plan_id))

            applied += 1

        try:
            await self._store.touch_plan(plan_id, ctx)
        except StoreError as e:
            self._metrics.inc_persistence_error("update", "touch")
            raise PersistenceError(f"Failed to update plan {plan_id}") from e

        logger.info(
            f"Plan updated: {plan_id} ({applied} activities)",
            extra={"structured": {"plan_id": str(plan_id), "applied": applied}},
        )

        return await self.get_plan(ctx, plan_id)

    async def archive(self, ctx: RequestContext, plan_id: UUID) -> None:
        """Hide a plan from listing and fetch operations.

        Raises:
            NotFound: If the plan is missing or already archived
            Forbidden: If the plan belongs to another user
            PersistenceError: If the store write failed
        """
        await self._require_plan(ctx, plan_id)

        try:
            await self._store.archive_plan(plan_id, ctx)
        except StoreError as e:
            self._metrics.inc_persistence_error("archive", "store")
            await self._error_logger.log_app_error(
                f"Failed to archive plan: {e}",
                user_id=ctx.user_id,
                plan_id=plan_id,
                exc=e,
            )
            raise PersistenceError(f"Failed to archive plan {plan_id}") from e

        logger.info(f"Plan archived: {plan_id}", extra={"structured": {"plan_id": str(plan_id)}})

    async def get_plan(self, ctx: RequestContext, plan_id: UUID) -> PlanWithActivities:
        """Load a visible plan with its activities ordered by day and position."""
        plan = await self._require_plan(ctx, plan_id)

        try:
            activities = await self._store.list_activities(plan_id)
        except StoreError as e:
            raise PersistenceError(f"Failed to fetch plan {plan_id} with activities") from e

        return PlanWithActivities(plan=plan, activities=activities)

    async def list_plans(
        self, ctx: RequestContext, sort: PlanSort = PlanSort.created_at
    ) -> list[PlanSummary]:
        """List the user's non-archived plans, newest first on ``sort``."""
        try:
            plans = await self._store.list_plans(ctx, sort)
        except StoreError as e:
            self._metrics.inc_persistence_error("list", "store")
            await self._error_logger.log_app_error(
                f"Failed to fetch plans: {e}",
                user_id=ctx.user_id,
                payload={"sort": PlanSort(sort).value},
                exc=e,
            )
            raise PersistenceError("Failed to fetch plans") from e

        cities = await self._resolve_cities({p.city_id for p in plans})

        return [
            PlanSummary(
                id=p.id,
                city=cities.get(p.city_id),
                duration_days=p.duration_days,
                trip_intensity=p.trip_intensity,
                status=p.status,
                created_at=p.created_at,
                updated_at=p.updated_at,
            )
            for p in plans
        ]

    async def submit_feedback(
        self, ctx: RequestContext, plan_id: UUID, helpful: bool
    ) -> FeedbackRecord:
        """Record whether the user found a plan helpful.

        Raises:
            NotFound: If the plan is missing or archived
            Forbidden: If the plan belongs to another user
            AlreadySubmitted: If the user already left feedback on this plan
            PersistenceError: If the store write failed
        """
        await self._require_plan(ctx, plan_id)

        try:
            return await self._store.insert_feedback(plan_id, ctx, helpful)
        except UniqueViolation as e:
            raise AlreadySubmitted(
                "Feedback already submitted for this plan", {"plan_id": str(plan_id)}
            ) from e
        except StoreError as e:
            self._metrics.inc_persistence_error("feedback", "store")
            await self._error_logger.log_app_error(
                f"Failed to insert feedback: {e}",
                user_id=ctx.user_id,
                plan_id=plan_id,
                payload={"helpful": helpful},
                exc=e,
            )
            raise PersistenceError("Failed to submit feedback") from e

    async def has_feedback(self, ctx: RequestContext, plan_id: UUID) -> bool:
        """Check whether the user already left feedback on a plan."""
        await self._require_plan(ctx, plan_id)

        try:
            feedback = await self._store.get_feedback(plan_id, ctx)
        except StoreError as e:
            raise PersistenceError("Failed to check feedback") from e

        return feedback is not None

    async def _require_plan(self, ctx: RequestContext, plan_id: UUID) -> PlanRecord:
        try:
            plan = await self._store.get_plan(plan_id, ctx)
        except AccessDenied as e:
            raise Forbidden("Access denied", {"plan_id": str(plan_id)}) from e
        except StoreError as e:
            raise PersistenceError(f"Failed to fetch plan {plan_id}") from e

        if plan is None:
            raise NotFound("Plan not found", {"plan_id": str(plan_id)})

        return plan

    async def _resolve_cities(self, city_ids: set[UUID]) -> dict[UUID, City]:
        if self._cities is None:
            return {}

        resolved: dict[UUID, City] = {}
        for city_id in city_ids:
            try:
                city = await self._cities.get_city(city_id)
            except StoreError as e:
                raise PersistenceError("Failed to fetch plan cities") from e
            if city is not None:
                resolved[city_id] = city
        return resolved

    @staticmethod
    def _validate_save_request(request: SavePlanRequest) -> None:
        if not request.activities:
            raise ValidationError("At least one activity is required", field="activities")

        for activity in request.activities:
            if activity.day_number > request.duration_days:
                raise ValidationError(
                    "All activities must have day_number less than or equal to duration_days",
                    field="activities",
                    details={"day_number": activity.day_number},
                )

    @staticmethod
    def _batch_payload(edits: Sequence[ActivityEdit], applied: int) -> dict[str, Any]:
        return {
            "activities": [e.model_dump(mode="json") for e in edits],
            "applied": applied,
        }
