"""Draft generation adapter: provider text -> validated, densely ordered activities.

Contract with the provider:
- One request, one free-text response expected to embed a JSON array
- The exact string ``REJECTION_SENTINEL`` means the provider refused
- Each element carries title, day_number, position, place_name, latitude,
  longitude and description

Any failure surfaces as a ``GenerationFailed`` subclass. Nothing is retried
and no partial activity set is ever returned.
"""

import asyncio
import json
import logging
import re
import time
from typing import Any
from urllib.parse import quote

from backend.vibetravel.errors import (
    EmptyResponse,
    GenerationFailed,
    InvalidActivityField,
    MalformedResponse,
    ProviderError,
    ProviderTimeout,
    RequestRejected,
)
from backend.vibetravel.generation.prompt import build_itinerary_prompt
from backend.vibetravel.itinerary.ordering import renumber
from backend.vibetravel.llm.client import REJECTION_SENTINEL, ItineraryProvider
from backend.vibetravel.models.activity import PlanActivity
from backend.vibetravel.models.common import MAX_GENERATED_POSITION, activities_per_day
from backend.vibetravel.models.plan import ItineraryRequest
from backend.vibetravel.utils.metrics import PrometheusPlannerMetrics

logger = logging.getLogger(__name__)

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query="

# Accepted spellings per normalized field, first match wins
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "day_number": ("day_number", "dayNumber", "day"),
    "position": ("position",),
    "name": ("title", "name"),
    "place_name": ("place_name", "placeName", "place"),
    "latitude": ("latitude", "lat"),
    "longitude": ("longitude", "lng", "lon"),
    "description": ("description", "notes"),
}

_MISSING = object()


def _field(element: dict[str, Any], name: str) -> Any:
    for key in FIELD_ALIASES[name]:
        if key in element:
            return element[key]
    return _MISSING


def extract_json_array(raw: str) -> list[Any]:
    """Return the first well-formed JSON array embedded in ``raw``.

    The widest ``[...]`` span is tried first, since providers usually wrap a
    single array in prose or code fences. When that span does not parse, each
    ``[`` is tried in turn as the start of an array.

    Raises:
        MalformedResponse: If no parseable array exists
    """
    match = re.search(r"\[[\s\S]*\]", raw)
    if match is None:
        raise MalformedResponse("No JSON array found in AI response")

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        parsed = None
        decoder = json.JSONDecoder()
        for start in (m.start() for m in re.finditer(r"\[", raw)):
            try:
                candidate, _ = decoder.raw_decode(raw, start)
            except json.JSONDecodeError:
                continue
            if isinstance(candidate, list):
                parsed = candidate
                break

    if not isinstance(parsed, list):
        raise MalformedResponse("AI response does not contain a valid JSON array")

    return parsed


def _as_int(value: Any) -> int | None:
    # bool is an int subclass but never a valid day or position
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value)


def _non_empty_str(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def parse_activity(element: Any, index: int, duration_days: int) -> PlanActivity:
    """Validate one provider element and normalize it into a PlanActivity.

    Raises:
        InvalidActivityField: On the first out-of-contract field
    """
    if not isinstance(element, dict):
        raise InvalidActivityField("activity", element, index)

    raw_day = _field(element, "day_number")
    day_number = _as_int(raw_day)
    if day_number is None or not 1 <= day_number <= duration_days:
        raise InvalidActivityField("day_number", None if raw_day is _MISSING else raw_day, index)

    raw_position = _field(element, "position")
    position = _as_int(raw_position)
    if position is None or not 1 <= position <= MAX_GENERATED_POSITION:
        raise InvalidActivityField(
            "position", None if raw_position is _MISSING else raw_position, index
        )

    raw_name = _field(element, "name")
    name = _non_empty_str(raw_name)
    if name is None or len(name) > 255:
        raise InvalidActivityField("name", None if raw_name is _MISSING else raw_name, index)

    raw_place = _field(element, "place_name")
    if raw_place is _MISSING:
        place_name = name
    else:
        place_name = _non_empty_str(raw_place)
        if place_name is None:
            raise InvalidActivityField("place_name", raw_place, index)

    raw_lat = _field(element, "latitude")
    latitude = _as_number(raw_lat)
    if latitude is None or not -90 <= latitude <= 90:
        raise InvalidActivityField("latitude", None if raw_lat is _MISSING else raw_lat, index)

    raw_lng = _field(element, "longitude")
    longitude = _as_number(raw_lng)
    if longitude is None or not -180 <= longitude <= 180:
        raise InvalidActivityField("longitude", None if raw_lng is _MISSING else raw_lng, index)

    description = _non_empty_str(_field(element, "description"))

    return PlanActivity(
        id=None,
        day_number=day_number,
        position=position,
        name=name,
        latitude=latitude,
        longitude=longitude,
        google_maps_url=MAPS_SEARCH_URL + quote(place_name, safe=""),
        notes=description[:500] if description else None,
    )


def parse_activities(raw: str, request: ItineraryRequest) -> list[PlanActivity]:
    """Turn raw provider text into a renumbered activity set.

    Raises:
        RequestRejected: Provider returned the rejection sentinel
        MalformedResponse: No parseable JSON array
        EmptyResponse: Array has no elements
        InvalidActivityField: An element violates the field contract
    """
    if raw.strip() == REJECTION_SENTINEL:
        raise RequestRejected("Request rejected by AI")

    elements = extract_json_array(raw)
    if not elements:
        raise EmptyResponse("Response array is empty")

    activities = [
        parse_activity(element, index, request.duration_days)
        for index, element in enumerate(elements)
    ]

    expected = request.duration_days * activities_per_day(request.trip_intensity)
    if len(activities) != expected:
        logger.warning(
            f"Provider returned {len(activities)} activities, expected {expected}",
            extra={
                "structured": {
                    "city_id": str(request.city_id),
                    "expected": expected,
                    "received": len(activities),
                }
            },
        )

    return renumber(activities)


class DraftGenerationAdapter:
    """Wraps a provider with a fixed deadline and response validation."""

    def __init__(
        self,
        provider: ItineraryProvider,
        timeout_seconds: float = 30.0,
        metrics: PrometheusPlannerMetrics | None = None,
    ) -> None:
        self._provider = provider
        self._timeout_seconds = timeout_seconds
        self._metrics = metrics or PrometheusPlannerMetrics()

    async def generate(self, request: ItineraryRequest) -> list[PlanActivity]:
        """Generate a validated, densely ordered activity set.

        Args:
            request: Structured itinerary request

        Returns:
            Activities without ids, positions dense within each day

        Raises:
            GenerationFailed: Any provider, timeout, parsing or validation failure
        """
        prompt = build_itinerary_prompt(request)
        start = time.perf_counter()

        try:
            raw = await self._call_provider(prompt, request)
            activities = parse_activities(raw, request)
        except GenerationFailed as e:
            self._metrics.record_generation(e.reason, self._elapsed_ms(start))
            logger.warning(
                f"Itinerary generation failed: {e.message}",
                extra={
                    "structured": {
                        "city_id": str(request.city_id),
                        "reason": e.reason,
                        "details": e.details,
                    }
                },
            )
            raise

        self._metrics.record_generation("success", self._elapsed_ms(start))
        return activities

    async def _call_provider(self, prompt: str, request: ItineraryRequest) -> str:
        try:
            return await asyncio.wait_for(
                self._provider.complete(prompt, request), timeout=self._timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise ProviderTimeout(
                f"AI service did not respond within {self._timeout_seconds}s"
            ) from e
        except GenerationFailed:
            raise
        except Exception as e:
            raise ProviderError(f"AI service error: {e}") from e

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return (time.perf_counter() - start) * 1000
