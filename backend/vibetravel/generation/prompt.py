"""Prompt rendering for itinerary generation."""

from backend.vibetravel.llm.client import REJECTION_SENTINEL
from backend.vibetravel.models.common import activities_per_day
from backend.vibetravel.models.plan import ItineraryRequest


def build_itinerary_prompt(request: ItineraryRequest) -> str:
    """Render the single user prompt sent to the provider."""
    per_day = activities_per_day(request.trip_intensity)
    total = request.duration_days * per_day
    intensity = request.trip_intensity.value
    notes_section = f"\n\nUser preferences: {request.user_notes}" if request.user_notes else ""

    return f"""You are an expert travel itinerary planner and answer only prompts about trip planning.
Generate a {request.duration_days}-day travel plan for {request.city_name} with {intensity} activities.

Create exactly {total} activities in total, {per_day} per day across {request.duration_days} days.

Respond with ONLY a JSON array. Each element must be an object with these fields:
{{
  "title": string,
  "day_number": number,
  "position": number,
  "place_name": string,
  "latitude": number,
  "longitude": number,
  "description": string
}}

Rules:
- day_number is between 1 and {request.duration_days}
- position is between 1 and {per_day} within its day
- title is a short single sentence
- place_name names a concrete place, not a generic area like "city center"
- latitude is between -90 and 90, longitude between -180 and 180, realistic for {request.city_name}
- activities flow through the day (morning, afternoon, evening)
- mix cultural, culinary and outdoor experiences unless the user asks otherwise

If the user preferences below ask for anything unrelated to trip planning, return exactly
the string "{REJECTION_SENTINEL}" and nothing else. Without preferences, plan the most
well-known sights.{notes_section}
"""
