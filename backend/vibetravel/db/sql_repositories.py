"""SQL implementations of repository interfaces."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.vibetravel.db.context import RequestContext
from backend.vibetravel.db.models import AppErrorLog, LlmErrorLog
from backend.vibetravel.db.models import City as CityDB
from backend.vibetravel.db.models import Plan as PlanDB
from backend.vibetravel.db.models import PlanActivity as PlanActivityDB
from backend.vibetravel.db.models import PlanFeedback as PlanFeedbackDB
from backend.vibetravel.db.queries import (
    select_owned_plan_ids,
    select_user_feedback,
    select_visible_plans,
)
from backend.vibetravel.db.repositories import AccessDenied, StoreError, UniqueViolation
from backend.vibetravel.models.activity import ActivityEdit, PlanActivity
from backend.vibetravel.models.common import City, PlanSort, PlanStatus, TripIntensity
from backend.vibetravel.models.plan import FeedbackRecord, PlanRecord


def _as_utc(value: datetime) -> datetime:
    # SQLite drops the offset of DateTime(timezone=True) columns on read
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _plan_record(plan: PlanDB) -> PlanRecord:
    return PlanRecord(
        id=plan.id,
        user_id=plan.user_id,
        city_id=plan.city_id,
        duration_days=plan.duration_days,
        trip_intensity=TripIntensity(plan.trip_intensity),
        notes=plan.notes,
        status=PlanStatus(plan.status),
        is_archived=plan.is_archived,
        created_at=_as_utc(plan.created_at),
        updated_at=_as_utc(plan.updated_at),
    )


def _activity_model(row: PlanActivityDB) -> PlanActivity:
    return PlanActivity(
        id=row.id,
        day_number=row.day_number,
        position=row.position,
        name=row.name,
        latitude=row.latitude,
        longitude=row.longitude,
        google_maps_url=row.google_maps_url,
        notes=row.notes,
    )


def _feedback_record(row: PlanFeedbackDB) -> FeedbackRecord:
    return FeedbackRecord(
        id=row.id,
        plan_id=row.plan_id,
        user_id=row.user_id,
        helpful=row.helpful,
        created_at=_as_utc(row.created_at),
    )


class SqlPlanStore:
    """SQL implementation of PlanStore.

    Records are built from ORM rows after flush and before commit, so no
    attribute is lazily reloaded once the session has committed.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

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
        plan = PlanDB(
            id=uuid.uuid4(),
            user_id=ctx.user_id,
            city_id=city_id,
            duration_days=duration_days,
            trip_intensity=trip_intensity.value,
            notes=notes,
            status=status.value,
            is_archived=False,
            created_at=now,
            updated_at=now,
        )

        try:
            self._session.add(plan)
            await self._session.flush()
            record = _plan_record(plan)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StoreError(f"Failed to insert plan: {e}") from e

        return record

    async def insert_activities(
        self, plan_id: uuid.UUID, activities: list[PlanActivity]
    ) -> list[PlanActivity]:
        """Bulk insert activities for a plan in one commit."""
        now = datetime.now(UTC)
        rows = [
            PlanActivityDB(
                id=uuid.uuid4(),
                plan_id=plan_id,
                day_number=a.day_number,
                position=a.position,
                name=a.name,
                latitude=a.latitude,
                longitude=a.longitude,
                notes=a.notes,
                google_maps_url=a.google_maps_url,
                created_at=now,
                updated_at=now,
            )
            for a in activities
        ]

        try:
            self._session.add_all(rows)
            await self._session.flush()
            inserted = [_activity_model(row) for row in rows]
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StoreError(f"Failed to insert activities for plan {plan_id}: {e}") from e

        return inserted

    async def get_plan(self, plan_id: uuid.UUID, ctx: RequestContext) -> PlanRecord | None:
        """Get a visible plan by id."""
        try:
            result = await self._session.execute(
                select(PlanDB).where(PlanDB.id == plan_id, PlanDB.is_archived.is_(False))
            )
            plan = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load plan {plan_id}: {e}") from e

        if plan is None:
            return None

        if plan.user_id != ctx.user_id:
            raise AccessDenied(f"Plan {plan_id} belongs to another user")

        return _plan_record(plan)

    async def list_activities(self, plan_id: uuid.UUID) -> list[PlanActivity]:
        """List a plan's activities ordered by day and position."""
        try:
            result = await self._session.execute(
                select(PlanActivityDB)
                .where(PlanActivityDB.plan_id == plan_id)
                .order_by(PlanActivityDB.day_number, PlanActivityDB.position)
                # Position updates bypass the identity map
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load activities for plan {plan_id}: {e}") from e

        return [_activity_model(row) for row in result.scalars()]

    async def update_activity_position(
        self, plan_id: uuid.UUID, edit: ActivityEdit, ctx: RequestContext
    ) -> bool:
        """Move one activity, scoped to the plan and to the caller's plans."""
        stmt = (
            update(PlanActivityDB)
            .where(
                PlanActivityDB.id == edit.id,
                PlanActivityDB.plan_id == plan_id,
                PlanActivityDB.plan_id.in_(select_owned_plan_ids(ctx)),
            )
            .values(
                day_number=edit.day_number,
                position=edit.position,
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )

        try:
            result = await self._session.execute(stmt)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StoreError(f"Failed to update activity {edit.id}: {e}") from e

        return result.rowcount > 0

    async def touch_plan(self, plan_id: uuid.UUID, ctx: RequestContext) -> None:
        """Set the plan's updated_at to now."""
        await self._update_owned_plan(plan_id, ctx, updated_at=datetime.now(UTC))

    async def archive_plan(self, plan_id: uuid.UUID, ctx: RequestContext) -> None:
        """Hide the plan from listing and fetch operations."""
        await self._update_owned_plan(
            plan_id,
            ctx,
            is_archived=True,
            status=PlanStatus.archived.value,
            updated_at=datetime.now(UTC),
        )

    async def list_plans(self, ctx: RequestContext, sort: PlanSort) -> list[PlanRecord]:
        """List visible plans for the context user, sorted descending."""
        column = getattr(PlanDB, PlanSort(sort).value)

        try:
            result = await self._session.execute(
                select_visible_plans(ctx).order_by(column.desc(), PlanDB.id)
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list plans: {e}") from e

        return [_plan_record(plan) for plan in result.scalars()]

    async def insert_feedback(
        self, plan_id: uuid.UUID, ctx: RequestContext, helpful: bool
    ) -> FeedbackRecord:
        """Record the context user's feedback on a plan."""
        row = PlanFeedbackDB(
            id=uuid.uuid4(),
            plan_id=plan_id,
            user_id=ctx.user_id,
            helpful=helpful,
            created_at=datetime.now(UTC),
        )

        try:
            self._session.add(row)
            await self._session.flush()
            record = _feedback_record(row)
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise UniqueViolation(f"Feedback already exists for plan {plan_id}") from e
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StoreError(f"Failed to insert feedback for plan {plan_id}: {e}") from e

        return record

    async def get_feedback(
        self, plan_id: uuid.UUID, ctx: RequestContext
    ) -> FeedbackRecord | None:
        """Get the context user's feedback on a plan."""
        try:
            result = await self._session.execute(select_user_feedback(plan_id, ctx))
            row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load feedback for plan {plan_id}: {e}") from e

        return _feedback_record(row) if row is not None else None

    async def _update_owned_plan(
        self, plan_id: uuid.UUID, ctx: RequestContext, **values: Any
    ) -> None:
        try:
            plan = await self._session.get(PlanDB, plan_id)
            if plan is None:
                return
            if plan.user_id != ctx.user_id:
                raise AccessDenied(f"Plan {plan_id} belongs to another user")

            for key, value in values.items():
                setattr(plan, key, value)

            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StoreError(f"Failed to update plan {plan_id}: {e}") from e


class SqlCityRepository:
    """SQL implementation of CityRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_city(self, city_id: uuid.UUID) -> City | None:
        """Get city by ID."""
        try:
            row = await self._session.get(CityDB, city_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load city {city_id}: {e}") from e

        return City(id=row.id, name=row.name) if row is not None else None

    async def list_cities(self) -> list[City]:
        """List all cities ordered by name."""
        try:
            result = await self._session.execute(select(CityDB).order_by(CityDB.name))
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list cities: {e}") from e

        return [City(id=row.id, name=row.name) for row in result.scalars()]


class SqlErrorLogSink:
    """SQL implementation of ErrorLogSink.

    Each entry is written in its own session so a failed request session
    never blocks the log write.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

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
        entry = AppErrorLog(
            id=uuid.uuid4(),
            occurred_at=datetime.now(UTC),
            user_id=user_id,
            plan_id=plan_id,
            severity=severity,
            message=message,
            stack_trace=stack_trace,
            payload=payload,
        )
        await self._write(entry)

    async def record_llm_error(
        self,
        *,
        message: str,
        user_id: uuid.UUID | None,
        request_payload: dict[str, Any] | None,
        response_payload: dict[str, Any] | None,
    ) -> None:
        """Persist one generation error entry."""
        entry = LlmErrorLog(
            id=uuid.uuid4(),
            occurred_at=datetime.now(UTC),
            user_id=user_id,
            message=message,
            request_payload=request_payload,
            response_payload=response_payload,
        )
        await self._write(entry)

    async def _write(self, entry: AppErrorLog | LlmErrorLog) -> None:
        try:
            async with self._session_factory() as session:
                session.add(entry)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to write {entry.__tablename__} entry: {e}") from e
