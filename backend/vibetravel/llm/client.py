"""Generation provider clients with OpenRouter integration.

Security: Reads API key from environment only, never hardcoded.
Provides a deterministic stub when no key is present for testing and local
development.
"""

import json
import logging
from typing import Protocol

import httpx
import openai
from openai import AsyncOpenAI

from backend.vibetravel.config import Settings, get_settings
from backend.vibetravel.errors import ProviderError, ProviderTimeout
from backend.vibetravel.models.common import activities_per_day
from backend.vibetravel.models.plan import ItineraryRequest

logger = logging.getLogger(__name__)

# Exact text the provider is instructed to return for off-topic or abusive notes
REJECTION_SENTINEL = "Request rejected by AI"


class ItineraryProvider(Protocol):
    """Protocol for generation provider implementations."""

    async def complete(self, prompt: str, request: ItineraryRequest) -> str:
        """Send one prompt and return the provider's raw text.

        Args:
            prompt: Fully rendered prompt
            request: Structured request the prompt was built from

        Returns:
            Free-form text expected to embed a JSON array of activities

        Raises:
            ProviderError: On network, HTTP or empty-content failures
            ProviderTimeout: When the provider's own timeout fires
        """
        ...


class DeterministicStubProvider:
    """Deterministic stub provider for testing (no API key required)."""

    async def complete(self, prompt: str, request: ItineraryRequest) -> str:
        """Generate a placeholder itinerary with the requested volume."""
        per_day = activities_per_day(request.trip_intensity)
        activities = []

        for day in range(1, request.duration_days + 1):
            for position in range(1, per_day + 1):
                activities.append(
                    {
                        "title": f"Explore {request.city_name} highlight {day}.{position}",
                        "day_number": day,
                        "position": position,
                        "place_name": f"{request.city_name} landmark {day}-{position}",
                        "latitude": round(45.0 + day * 0.01, 4),
                        "longitude": round(10.0 + position * 0.01, 4),
                        "description": "Placeholder activity generated without an LLM.",
                    }
                )

        return json.dumps(activities, indent=2)


class OpenRouterProvider:
    """OpenRouter-backed provider using the OpenAI-compatible chat API."""

    def __init__(
        self,
        api_key: str,
        model: str = "anthropic/claude-haiku-4.5",
        base_url: str = "https://openrouter.ai/api/v1",
        temperature: float = 0.7,
        max_tokens: int = 3000,
        timeout_seconds: float = 30.0,
        site_url: str = "http://localhost:3000",
        site_title: str = "VibeTravel",
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key (read from environment)
            model: Model slug routed by OpenRouter
            base_url: OpenAI-compatible endpoint
            temperature: Sampling temperature
            max_tokens: Completion token cap
            timeout_seconds: HTTP timeout for the SDK
            site_url: Sent as HTTP-Referer for OpenRouter attribution
            site_title: Sent as X-Title for OpenRouter attribution
            http_client: Optional transport override (tests inject a mock)
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
            default_headers={"HTTP-Referer": site_url, "X-Title": site_title},
            http_client=http_client,
        )
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def complete(self, prompt: str, request: ItineraryRequest) -> str:
        """Call the chat completions endpoint with a single user message."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.APITimeoutError as e:
            raise ProviderTimeout("AI service timed out") from e
        except openai.APIStatusError as e:
            raise ProviderError(
                f"OpenRouter API error: {e.status_code}", {"status_code": e.status_code}
            ) from e
        except openai.APIError as e:
            raise ProviderError(f"OpenRouter API call failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ProviderError("Empty response from AI service")

        return content


def get_provider(settings: Settings | None = None) -> ItineraryProvider:
    """Factory function to get appropriate provider based on config.

    Returns:
        OpenRouterProvider if API key is configured, DeterministicStubProvider otherwise
    """
    settings = settings or get_settings()
    api_key = settings.openrouter_api_key

    if api_key and api_key.get_secret_value():
        logger.info("Using OpenRouter provider for itinerary generation")
        return OpenRouterProvider(
            api_key=api_key.get_secret_value(),
            model=settings.generation_model,
            base_url=settings.openrouter_base_url,
            temperature=settings.generation_temperature,
            max_tokens=settings.generation_max_tokens,
            timeout_seconds=settings.generation_timeout_seconds,
            site_url=settings.site_url,
            site_title=settings.site_title,
        )

    logger.warning("No OpenRouter API key configured, using deterministic stub provider")
    return DeterministicStubProvider()
