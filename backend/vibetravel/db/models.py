"""SQLAlchemy ORM models for plans, activities, feedback and error logs."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class City(Base):
    """City table - predefined destinations offered by the wizard."""

    __tablename__ = "cities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    # Relationships
    plans: Mapped[list["Plan"]] = relationship("Plan", back_populates="city")


class Plan(Base):
    """Plan table - one requested itinerary, soft-deleted via is_archived."""

    __tablename__ = "plans"
    __table_args__ = (
        CheckConstraint(
            "duration_days >= 1 AND duration_days <= 5", name="ck_plans_duration_days"
        ),
        Index("idx_plans_user_created", "user_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    city_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("cities.id"), nullable=False)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    trip_intensity: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="active")
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    city: Mapped["City"] = relationship("City", back_populates="plans")
    activities: Mapped[list["PlanActivity"]] = relationship(
        "PlanActivity", back_populates="plan", cascade="all, delete-orphan"
    )
    feedback: Mapped[list["PlanFeedback"]] = relationship(
        "PlanFeedback", back_populates="plan", cascade="all, delete-orphan"
    )


class PlanActivity(Base):
    """Plan activity table - positions are dense per (plan_id, day_number).

    Density is checked in memory before a batch is written. There is no unique
    (plan_id, day_number, position) constraint: a sequential batch of swaps
    passes through states where two rows briefly share a slot.
    """

    __tablename__ = "plan_activities"
    __table_args__ = (
        CheckConstraint("day_number >= 1", name="ck_activity_day_number"),
        CheckConstraint("position >= 1", name="ck_activity_position"),
        Index("idx_activities_plan_day_pos", "plan_id", "day_number", "position"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    plan_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False
    )
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    google_maps_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    plan: Mapped["Plan"] = relationship("Plan", back_populates="activities")


class PlanFeedback(Base):
    """Plan feedback table - one helpful/not-helpful vote per user per plan."""

    __tablename__ = "plan_feedback"
    __table_args__ = (UniqueConstraint("plan_id", "user_id", name="uq_feedback_plan_user"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    plan_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    helpful: Mapped[bool] = mapped_column(Boolean, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    plan: Mapped["Plan"] = relationship("Plan", back_populates="feedback")


class AppErrorLog(Base):
    """Application error log table - reconciliation trail for failed writes."""

    __tablename__ = "app_error_logs"
    __table_args__ = (Index("idx_app_logs_severity_time", "severity", "occurred_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    plan_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    severity: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    stack_trace: Mapped[str | None] = mapped_column(Text, nullable=True)
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)


class LlmErrorLog(Base):
    """LLM error log table - failed generation requests with payloads."""

    __tablename__ = "llm_error_logs"
    __table_args__ = (Index("idx_llm_logs_user_time", "user_id", "occurred_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    request_payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    response_payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
