"""FastAPI dependency providers for stores and services.

Routes depend on the service providers only, so tests swap in in-memory
stores or stub providers through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.vibetravel.config import Settings, get_settings
from backend.vibetravel.db.engine import get_session, get_session_factory
from backend.vibetravel.db.repositories import CityRepository, PlanStore
from backend.vibetravel.db.sql_repositories import (
    SqlCityRepository,
    SqlErrorLogSink,
    SqlPlanStore,
)
from backend.vibetravel.generation.adapter import DraftGenerationAdapter
from backend.vibetravel.llm.client import get_provider
from backend.vibetravel.services.generation import DraftPlanService
from backend.vibetravel.services.persistence import PlanPersistenceOrchestrator
from backend.vibetravel.utils.logging import StructuredErrorLogger


async def get_plan_store(session: Annotated[AsyncSession, Depends(get_session)]) -> PlanStore:
    """SQL plan store bound to the request session."""
    return SqlPlanStore(session)


async def get_city_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CityRepository:
    """SQL city repository bound to the request session."""
    return SqlCityRepository(session)


async def get_error_logger(
    settings: Annotated[Settings, Depends(get_settings)],
) -> StructuredErrorLogger:
    """Error logger, persisting entries when persist_error_logs is enabled."""
    if settings.persist_error_logs:
        return StructuredErrorLogger(SqlErrorLogSink(get_session_factory()))
    return StructuredErrorLogger()


async def get_orchestrator(
    store: Annotated[PlanStore, Depends(get_plan_store)],
    cities: Annotated[CityRepository, Depends(get_city_repository)],
    error_logger: Annotated[StructuredErrorLogger, Depends(get_error_logger)],
) -> PlanPersistenceOrchestrator:
    """Plan persistence orchestrator for the request."""
    return PlanPersistenceOrchestrator(store, cities=cities, error_logger=error_logger)


async def get_draft_plan_service(
    cities: Annotated[CityRepository, Depends(get_city_repository)],
    error_logger: Annotated[StructuredErrorLogger, Depends(get_error_logger)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DraftPlanService:
    """Draft generation service using the configured provider."""
    adapter = DraftGenerationAdapter(
        get_provider(settings), timeout_seconds=settings.generation_timeout_seconds
    )
    return DraftPlanService(cities, adapter, error_logger)
