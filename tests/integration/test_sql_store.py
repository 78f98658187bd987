"""Tests for the SQL store implementations on an in-memory SQLite database."""

import uuid
from collections.abc import Callable
from datetime import UTC

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.vibetravel.db.context import RequestContext
from backend.vibetravel.db.models import AppErrorLog, LlmErrorLog
from backend.vibetravel.db.models import City as CityDB
from backend.vibetravel.db.repositories import AccessDenied, UniqueViolation
from backend.vibetravel.db.sql_repositories import (
    SqlCityRepository,
    SqlErrorLogSink,
    SqlPlanStore,
)
from backend.vibetravel.models.activity import ActivityEdit, PlanActivity
from backend.vibetravel.models.common import City, PlanSort, PlanStatus, TripIntensity
from backend.vibetravel.models.plan import PlanRecord

MakeActivity = Callable[..., PlanActivity]


async def _insert_city(session: AsyncSession, city: City) -> None:
    session.add(CityDB(id=city.id, name=city.name))
    await session.commit()


async def _insert_plan(
    store: SqlPlanStore, ctx: RequestContext, city: City, duration_days: int = 2
) -> PlanRecord:
    return await store.insert_plan(
        ctx,
        city_id=city.id,
        duration_days=duration_days,
        trip_intensity=TripIntensity.full_day,
        notes=None,
        status=PlanStatus.active,
    )


@pytest.mark.asyncio
async def test_insert_and_load_plan_with_activities(
    sqlite_session: AsyncSession,
    ctx_a: RequestContext,
    paris: City,
    make_activity: MakeActivity,
) -> None:
    """Inserted rows read back ordered by day and position."""
    await _insert_city(sqlite_session, paris)
    store = SqlPlanStore(sqlite_session)

    plan = await _insert_plan(store, ctx_a, paris)
    inserted = await store.insert_activities(
        plan.id,
        [
            make_activity(2, 1, "Montmartre", with_id=False),
            make_activity(1, 2, "Orsay", with_id=False),
            make_activity(1, 1, "Louvre", with_id=False),
        ],
    )

    loaded_plan = await store.get_plan(plan.id, ctx_a)
    loaded = await store.list_activities(plan.id)

    assert loaded_plan is not None
    assert loaded_plan.user_id == ctx_a.user_id
    assert loaded_plan.status == PlanStatus.active
    assert all(a.id is not None for a in inserted)
    assert [a.name for a in loaded] == ["Louvre", "Orsay", "Montmartre"]


@pytest.mark.asyncio
async def test_get_plan_scoping(
    sqlite_session: AsyncSession, ctx_a: RequestContext, ctx_b: RequestContext, paris: City
) -> None:
    """Unknown plans are None, foreign plans raise AccessDenied."""
    store = SqlPlanStore(sqlite_session)
    plan = await _insert_plan(store, ctx_a, paris)

    assert await store.get_plan(uuid.uuid4(), ctx_a) is None
    with pytest.raises(AccessDenied):
        await store.get_plan(plan.id, ctx_b)


@pytest.mark.asyncio
async def test_update_activity_position_is_scoped(
    sqlite_session: AsyncSession,
    ctx_a: RequestContext,
    ctx_b: RequestContext,
    paris: City,
    make_activity: MakeActivity,
) -> None:
    """Only the owner can move an activity, and only within its plan."""
    store = SqlPlanStore(sqlite_session)
    plan = await _insert_plan(store, ctx_a, paris)
    other_plan = await _insert_plan(store, ctx_a, paris)
    [louvre] = await store.insert_activities(plan.id, [make_activity(1, 1, with_id=False)])
    assert louvre.id is not None
    edit = ActivityEdit(id=louvre.id, day_number=2, position=1)

    assert await store.update_activity_position(plan.id, edit, ctx_b) is False
    assert await store.update_activity_position(other_plan.id, edit, ctx_a) is False
    assert await store.update_activity_position(plan.id, edit, ctx_a) is True

    [moved] = await store.list_activities(plan.id)
    assert (moved.day_number, moved.position) == (2, 1)


@pytest.mark.asyncio
async def test_transient_duplicate_slot_is_accepted(
    sqlite_session: AsyncSession,
    ctx_a: RequestContext,
    paris: City,
    make_activity: MakeActivity,
) -> None:
    """A swap applied one row at a time briefly shares a slot."""
    store = SqlPlanStore(sqlite_session)
    plan = await _insert_plan(store, ctx_a, paris)
    first, second = await store.insert_activities(
        plan.id, [make_activity(1, 1, "a", with_id=False), make_activity(1, 2, "b", with_id=False)]
    )
    assert first.id is not None and second.id is not None

    await store.update_activity_position(
        plan.id, ActivityEdit(id=first.id, day_number=1, position=2), ctx_a
    )
    await store.update_activity_position(
        plan.id, ActivityEdit(id=second.id, day_number=1, position=1), ctx_a
    )

    assert [a.name for a in await store.list_activities(plan.id)] == ["b", "a"]


@pytest.mark.asyncio
async def test_archive_hides_plan_from_list_and_get(
    sqlite_session: AsyncSession, ctx_a: RequestContext, ctx_b: RequestContext, paris: City
) -> None:
    """Archived plans are invisible; only the owner may archive."""
    store = SqlPlanStore(sqlite_session)
    kept = await _insert_plan(store, ctx_a, paris)
    archived = await _insert_plan(store, ctx_a, paris)

    with pytest.raises(AccessDenied):
        await store.archive_plan(archived.id, ctx_b)

    await store.archive_plan(archived.id, ctx_a)

    assert await store.get_plan(archived.id, ctx_a) is None
    assert [p.id for p in await store.list_plans(ctx_a, PlanSort.created_at)] == [kept.id]


@pytest.mark.asyncio
async def test_list_plans_sorted_and_scoped(
    sqlite_session: AsyncSession, ctx_a: RequestContext, ctx_b: RequestContext, paris: City
) -> None:
    """Plans sort descending on the requested column and stay per-user."""
    store = SqlPlanStore(sqlite_session)
    for duration in (1, 3, 2):
        await _insert_plan(store, ctx_a, paris, duration_days=duration)
    await _insert_plan(store, ctx_b, paris, duration_days=5)

    plans = await store.list_plans(ctx_a, PlanSort.duration_days)

    assert [p.duration_days for p in plans] == [3, 2, 1]


@pytest.mark.asyncio
async def test_touch_plan_moves_updated_at(
    sqlite_session: AsyncSession, ctx_a: RequestContext, paris: City
) -> None:
    """touch_plan advances updated_at and leaves created_at alone."""
    store = SqlPlanStore(sqlite_session)
    plan = await _insert_plan(store, ctx_a, paris)

    await store.touch_plan(plan.id, ctx_a)
    touched = await store.get_plan(plan.id, ctx_a)

    assert touched is not None
    assert touched.created_at == plan.created_at
    assert touched.updated_at >= plan.updated_at


@pytest.mark.asyncio
async def test_timestamps_read_back_in_utc(
    sqlite_session_factory: async_sessionmaker[AsyncSession], ctx_a: RequestContext, paris: City
) -> None:
    """Rows loaded in a new session keep their UTC offset."""
    async with sqlite_session_factory() as session:
        plan = await _insert_plan(SqlPlanStore(session), ctx_a, paris)
        await SqlPlanStore(session).insert_feedback(plan.id, ctx_a, helpful=True)

    async with sqlite_session_factory() as session:
        store = SqlPlanStore(session)
        loaded = await store.get_plan(plan.id, ctx_a)
        [listed] = await store.list_plans(ctx_a, PlanSort.created_at)
        feedback = await store.get_feedback(plan.id, ctx_a)

    assert loaded is not None and feedback is not None
    assert loaded.created_at == plan.created_at
    assert loaded.created_at.tzinfo == UTC
    assert listed.updated_at.tzinfo == UTC
    assert feedback.created_at.tzinfo == UTC


@pytest.mark.asyncio
async def test_feedback_unique_per_user_and_plan(
    sqlite_session: AsyncSession, ctx_a: RequestContext, ctx_b: RequestContext, paris: City
) -> None:
    """A second vote by the same user violates uniqueness; other users may vote."""
    store = SqlPlanStore(sqlite_session)
    plan = await _insert_plan(store, ctx_a, paris)

    record = await store.insert_feedback(plan.id, ctx_a, helpful=False)

    with pytest.raises(UniqueViolation):
        await store.insert_feedback(plan.id, ctx_a, helpful=True)

    stored = await store.get_feedback(plan.id, ctx_a)
    assert stored is not None
    assert stored.id == record.id
    assert stored.helpful is False
    assert await store.get_feedback(plan.id, ctx_b) is None
    await store.insert_feedback(plan.id, ctx_b, helpful=True)


@pytest.mark.asyncio
async def test_city_repository(sqlite_session: AsyncSession, paris: City) -> None:
    """Cities are fetched by id and listed by name."""
    await _insert_city(sqlite_session, paris)
    await _insert_city(sqlite_session, City(id=uuid.uuid4(), name="Amsterdam"))
    repo = SqlCityRepository(sqlite_session)

    assert await repo.get_city(paris.id) == paris
    assert await repo.get_city(uuid.uuid4()) is None
    assert [c.name for c in await repo.list_cities()] == ["Amsterdam", "Paris"]


@pytest.mark.asyncio
async def test_error_log_sink_writes_both_tables(
    sqlite_session_factory: async_sessionmaker[AsyncSession], ctx_a: RequestContext
) -> None:
    """Application and generation errors land in their own tables."""
    sink = SqlErrorLogSink(sqlite_session_factory)
    plan_id = uuid.uuid4()

    await sink.record_app_error(
        severity="error",
        message="Failed to insert activities",
        user_id=ctx_a.user_id,
        plan_id=plan_id,
        stack_trace="Traceback ...",
        payload={"activities": []},
    )
    await sink.record_llm_error(
        message="Request rejected by AI",
        user_id=ctx_a.user_id,
        request_payload={"city": "Paris"},
        response_payload=None,
    )

    async with sqlite_session_factory() as session:
        app_row = (await session.execute(select(AppErrorLog))).scalar_one()
        llm_row = (await session.execute(select(LlmErrorLog))).scalar_one()

    assert app_row.plan_id == plan_id
    assert app_row.payload == {"activities": []}
    assert llm_row.request_payload == {"city": "Paris"}
    assert llm_row.response_payload is None

