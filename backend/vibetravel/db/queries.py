"""Ownership-safe query helpers."""

from uuid import UUID

from sqlalchemy import Select, select

from backend.vibetravel.db.context import RequestContext
from backend.vibetravel.db.models import Plan, PlanFeedback


def select_visible_plans(ctx: RequestContext) -> Select[tuple[Plan]]:
    """Select plans owned by the context user that are not archived.

    Args:
        ctx: Request context with user_id

    Returns:
        Select filtered by user_id and is_archived
    """
    return select(Plan).where(Plan.user_id == ctx.user_id, Plan.is_archived.is_(False))


def select_owned_plan_ids(ctx: RequestContext) -> Select[tuple[UUID]]:
    """Select ids of every plan owned by the context user, archived included."""
    return select(Plan.id).where(Plan.user_id == ctx.user_id)


def select_user_feedback(plan_id: UUID, ctx: RequestContext) -> Select[tuple[PlanFeedback]]:
    """Select the context user's feedback row for one plan."""
    return select(PlanFeedback).where(
        PlanFeedback.plan_id == plan_id, PlanFeedback.user_id == ctx.user_id
    )
