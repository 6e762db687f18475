"""
Free-text geocoding.

Asks Gemini for a single JSON object with latitude and longitude. Anything
that does not parse into finite coordinates means "not found" (None), so the
caller can ask the user to search another way.
"""

import asyncio
import json
import re
from typing import Any

import structlog
from google.genai.types import GenerateContentConfig
from pydantic import BaseModel, ValidationError

from storefinder.config import Settings, get_settings
from storefinder.finder.exceptions import InvalidCredentialError, ServiceError
from storefinder.finder.models import Coordinates
from storefinder.finder.query_service import INVALID_KEY_MESSAGE, build_client, classify_error

logger = structlog.get_logger()

GEOCODE_PROMPT = """Return the latitude and longitude of this place: {query}

Respond with a JSON object with exactly two numeric keys, "latitude" and "longitude"."""


class GeocodeAnswer(BaseModel):
    """Response schema for the structured-output call."""

    latitude: float
    longitude: float


def parse_geocode_payload(text: str | None) -> Coordinates | None:
    """Parse the model's JSON answer. Returns None when it is unusable."""
    if not text:
        return None

    # Tolerate a fenced or prefixed answer
    json_match = re.search(r"\{[\s\S]*\}", text)
    if not json_match:
        return None

    try:
        data = json.loads(json_match.group())
    except json.JSONDecodeError:
        return None

    if not isinstance(data, dict):
        return None

    latitude = data.get("latitude")
    longitude = data.get("longitude")
    # bool is an int subclass; reject it along with strings and nulls
    for value in (latitude, longitude):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None

    try:
        return Coordinates(latitude=latitude, longitude=longitude)
    except ValidationError:
        return None


class Geocoder:
    """Resolves a free-text place description to Coordinates."""

    def __init__(self, settings: Settings | None = None, client: Any = None) -> None:
        self.settings = settings or get_settings()
        self.client = client if client is not None else build_client(self.settings)

    async def geocode(self, query: str) -> Coordinates | None:
        """Look up a place. Returns None when nothing usable comes back."""
        query = query.strip()
        if not query:
            return None
        if self.client is None:
            raise InvalidCredentialError(INVALID_KEY_MESSAGE)

        prompt = GEOCODE_PROMPT.format(query=query)

        def _call_gemini():
            return self.client.models.generate_content(
                model=self.settings.model_name,
                contents=prompt,
                config=GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=GeocodeAnswer,
                ),
            )

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(_call_gemini),
                timeout=self.settings.search_timeout_seconds or None,
            )
        except ServiceError:
            raise
        except Exception as e:
            logger.error("Geocoding call failed", query=query, error=str(e))
            raise classify_error(e) from e

        text = getattr(response, "text", None) if response is not None else None
        coordinates = parse_geocode_payload(text)
        if coordinates is None:
            logger.warning("Geocoding returned no usable coordinates", query=query)
        else:
            logger.info(
                "Geocoded query",
                query=query,
                latitude=coordinates.latitude,
                longitude=coordinates.longitude,
            )
        return coordinates
