"""Plan endpoints - draft generation, save, edit, archive and feedback."""

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from backend.vibetravel.api.auth import get_current_context
from backend.vibetravel.api.dependencies import get_draft_plan_service, get_orchestrator
from backend.vibetravel.db.context import RequestContext
from backend.vibetravel.models.common import PlanSort
from backend.vibetravel.models.plan import (
    FeedbackRequest,
    GenerateDraftPlanRequest,
    GenerateDraftPlanResponse,
    PlanSummary,
    PlanWithActivities,
    SavePlanRequest,
    SavePlanResponse,
    UpdatePlanRequest,
)
from backend.vibetravel.services.generation import DraftPlanService
from backend.vibetravel.services.persistence import PlanPersistenceOrchestrator

router = APIRouter(prefix="/plans", tags=["plans"])

Context = Annotated[RequestContext, Depends(get_current_context)]
Orchestrator = Annotated[PlanPersistenceOrchestrator, Depends(get_orchestrator)]


class FeedbackResponse(BaseModel):
    """Response for POST /plans/{plan_id}/feedback."""

    id: uuid.UUID
    created_at: datetime


class FeedbackStatusResponse(BaseModel):
    """Response for GET /plans/{plan_id}/feedback."""

    has_feedback: bool


@router.post("/generate", response_model=GenerateDraftPlanResponse)
async def generate_plan(
    request: GenerateDraftPlanRequest,
    ctx: Context,
    service: Annotated[DraftPlanService, Depends(get_draft_plan_service)],
) -> GenerateDraftPlanResponse:
    """Generate a draft itinerary. The draft is not persisted."""
    draft = await service.generate(ctx, request)
    return GenerateDraftPlanResponse(plan=draft)


@router.post("", response_model=SavePlanResponse, status_code=status.HTTP_201_CREATED)
async def save_plan(
    request: SavePlanRequest, ctx: Context, orchestrator: Orchestrator
) -> SavePlanResponse:
    """Persist a finalized draft as an active plan."""
    return await orchestrator.create(ctx, request)


@router.get("", response_model=list[PlanSummary])
async def list_plans(
    ctx: Context,
    orchestrator: Orchestrator,
    sort: Annotated[PlanSort, Query()] = PlanSort.created_at,
) -> list[PlanSummary]:
    """List the caller's plans, newest first."""
    return await orchestrator.list_plans(ctx, sort)


@router.get("/{plan_id}", response_model=PlanWithActivities)
async def get_plan(
    plan_id: uuid.UUID, ctx: Context, orchestrator: Orchestrator
) -> PlanWithActivities:
    """Get a plan with its activities ordered by day and position."""
    return await orchestrator.get_plan(ctx, plan_id)


@router.patch("/{plan_id}", response_model=PlanWithActivities)
async def update_plan(
    plan_id: uuid.UUID,
    request: UpdatePlanRequest,
    ctx: Context,
    orchestrator: Orchestrator,
) -> PlanWithActivities:
    """Apply reordered (day_number, position) assignments to a plan."""
    return await orchestrator.update(ctx, plan_id, request.activities)


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def archive_plan(plan_id: uuid.UUID, ctx: Context, orchestrator: Orchestrator) -> Response:
    """Archive a plan so it no longer shows up in lists or fetches."""
    await orchestrator.archive(ctx, plan_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{plan_id}/feedback",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_feedback(
    plan_id: uuid.UUID,
    request: FeedbackRequest,
    ctx: Context,
    orchestrator: Orchestrator,
) -> FeedbackResponse:
    """Record whether the caller found a plan helpful."""
    record = await orchestrator.submit_feedback(ctx, plan_id, request.helpful)
    return FeedbackResponse(id=record.id, created_at=record.created_at)


@router.get("/{plan_id}/feedback", response_model=FeedbackStatusResponse)
async def get_feedback_status(
    plan_id: uuid.UUID, ctx: Context, orchestrator: Orchestrator
) -> FeedbackStatusResponse:
    """Check whether the caller already left feedback on a plan."""
    return FeedbackStatusResponse(has_feedback=await orchestrator.has_feedback(ctx, plan_id))
