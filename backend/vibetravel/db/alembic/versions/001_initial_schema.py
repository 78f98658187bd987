"""Initial schema

Revision ID: 001
Revises:
Create Date: 2025-10-17

Creates:
- cities
- plans, plan_activities, plan_feedback
- app_error_logs, llm_error_logs
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _uuid_pk(name: str = "id") -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name, sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
    )


def upgrade() -> None:
    """Create all tables."""
    # cities table
    op.create_table(
        "cities",
        _uuid_pk(),
        sa.Column("name", sa.Text(), nullable=False, unique=True),
    )

    # plans table
    op.create_table(
        "plans",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("city_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("duration_days", sa.Integer(), nullable=False),
        sa.Column("trip_intensity", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), server_default=sa.text("'active'"), nullable=False),
        sa.Column("is_archived", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["city_id"], ["cities.id"]),
        sa.CheckConstraint(
            "duration_days >= 1 AND duration_days <= 5", name="ck_plans_duration_days"
        ),
    )
    op.create_index("idx_plans_user_created", "plans", ["user_id", "created_at"])

    # plan_activities table (positions validated in memory, no unique slot constraint)
    op.create_table(
        "plan_activities",
        _uuid_pk(),
        sa.Column("plan_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("day_number", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("google_maps_url", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["plan_id"], ["plans.id"], ondelete="CASCADE"),
        sa.CheckConstraint("day_number >= 1", name="ck_activity_day_number"),
        sa.CheckConstraint("position >= 1", name="ck_activity_position"),
    )
    op.create_index(
        "idx_activities_plan_day_pos", "plan_activities", ["plan_id", "day_number", "position"]
    )

    # plan_feedback table
    op.create_table(
        "plan_feedback",
        _uuid_pk(),
        sa.Column("plan_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("helpful", sa.Boolean(), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["plan_id"], ["plans.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("plan_id", "user_id", name="uq_feedback_plan_user"),
    )

    # app_error_logs table
    op.create_table(
        "app_error_logs",
        _uuid_pk(),
        _timestamp("occurred_at"),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("plan_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("severity", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("stack_trace", sa.Text(), nullable=True),
        sa.Column("payload", postgresql.JSONB(), nullable=True),
    )
    op.create_index("idx_app_logs_severity_time", "app_error_logs", ["severity", "occurred_at"])

    # llm_error_logs table
    op.create_table(
        "llm_error_logs",
        _uuid_pk(),
        _timestamp("occurred_at"),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("request_payload", postgresql.JSONB(), nullable=True),
        sa.Column("response_payload", postgresql.JSONB(), nullable=True),
    )
    op.create_index("idx_llm_logs_user_time", "llm_error_logs", ["user_id", "occurred_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("idx_llm_logs_user_time", table_name="llm_error_logs")
    op.drop_table("llm_error_logs")
    op.drop_index("idx_app_logs_severity_time", table_name="app_error_logs")
    op.drop_table("app_error_logs")
    op.drop_table("plan_feedback")
    op.drop_index("idx_activities_plan_day_pos", table_name="plan_activities")
    op.drop_table("plan_activities")
    op.drop_index("idx_plans_user_created", table_name="plans")
    op.drop_table("plans")
    op.drop_table("cities")
