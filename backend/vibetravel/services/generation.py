"""Draft plan generation: city lookup, provider call and draft assembly."""

import logging

from backend.vibetravel.db.context import RequestContext
from backend.vibetravel.db.repositories import CityRepository, StoreError
from backend.vibetravel.errors import GenerationFailed, NotFound, PersistenceError
from backend.vibetravel.generation.adapter import DraftGenerationAdapter
from backend.vibetravel.models.plan import DraftPlan, GenerateDraftPlanRequest, ItineraryRequest
from backend.vibetravel.utils.logging import StructuredErrorLogger

logger = logging.getLogger(__name__)


class DraftPlanService:
    """Builds draft plans; drafts are returned to the caller and never stored."""

    def __init__(
        self,
        cities: CityRepository,
        adapter: DraftGenerationAdapter,
        error_logger: StructuredErrorLogger | None = None,
    ) -> None:
        self._cities = cities
        self._adapter = adapter
        self._error_logger = error_logger or StructuredErrorLogger()

    async def generate(self, ctx: RequestContext, request: GenerateDraftPlanRequest) -> DraftPlan:
        """Generate a draft itinerary for the wizard input.

        Args:
            ctx: Request context of the requesting user
            request: City, duration, intensity and optional notes

        Returns:
            Draft plan whose activities carry no ids yet

        Raises:
            NotFound: If the city does not exist
            GenerationFailed: If the provider output could not be used
        """
        try:
            city = await self._cities.get_city(request.city_id)
        except StoreError as e:
            raise PersistenceError("Failed to look up city") from e

        if city is None:
            raise NotFound("City not found", {"city_id": str(request.city_id)})

        itinerary_request = ItineraryRequest(
            city_id=city.id,
            city_name=city.name,
            duration_days=request.duration_days,
            trip_intensity=request.trip_intensity,
            user_notes=request.user_notes,
        )

        try:
            activities = await self._adapter.generate(itinerary_request)
        except GenerationFailed as e:
            await self._error_logger.log_llm_error(
                e.message,
                user_id=ctx.user_id,
                request_payload=itinerary_request.model_dump(mode="json"),
                response_payload={"reason": e.reason, "details": e.details},
            )
            raise

        logger.info(
            f"Draft generated for {city.name}: {len(activities)} activities",
            extra={
                "structured": {
                    "user_id": str(ctx.user_id),
                    "city_id": str(city.id),
                    "activities": len(activities),
                }
            },
        )

        return DraftPlan(
            city_id=city.id,
            duration_days=request.duration_days,
            trip_intensity=request.trip_intensity,
            user_notes=request.user_notes,
            activities=activities,
        )
