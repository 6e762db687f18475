"""
Store query service.

Uses Google GenAI with Google Maps grounding to list franchise stores around
a center point, then reconciles the answer into StoreRecords.
"""

import asyncio
from typing import Any

import structlog
from google import genai
from google.genai import types
from google.genai.types import (
    GenerateContentConfig,
    GoogleMaps,
    HttpOptions,
    Tool,
)

from storefinder.config import Settings, get_settings
from storefinder.finder.exceptions import (
    InvalidCredentialError,
    NoDataError,
    ServiceError,
)
from storefinder.finder.models import (
    Coordinates,
    GroundingChunk,
    MapsSource,
    SearchResult,
    SkippedLine,
)
from storefinder.finder.reconciler import parse_data_lines, reconcile_lines

logger = structlog.get_logger()

# Substrings in an error message that mean the key was rejected
AUTH_FAILURE_MARKERS = ("API_KEY_INVALID", "API key not valid", "UNAUTHENTICATED")

NO_DATA_MESSAGE = "Could not fetch store information."
INVALID_KEY_MESSAGE = "Invalid API key, check the GEMINI_API_KEY environment variable."


def build_client(settings: Settings) -> genai.Client | None:
    """Create the GenAI client, or None when no key is configured."""
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY not configured - searches will fail")
        return None
    return genai.Client(
        api_key=settings.gemini_api_key,
        http_options=HttpOptions(api_version=settings.api_version),
    )


def classify_error(error: Exception) -> ServiceError:
    """Map an exception from the Gemini call onto the service error taxonomy."""
    if isinstance(error, ServiceError):
        return error

    message = str(error)
    if any(marker in message for marker in AUTH_FAILURE_MARKERS):
        return InvalidCredentialError(INVALID_KEY_MESSAGE)
    if isinstance(error, asyncio.TimeoutError):
        return ServiceError("Error: the store search timed out.")
    if message:
        return ServiceError(f"Error: {message}")
    return NoDataError(NO_DATA_MESSAGE)


def extract_grounding_chunks(response: Any) -> list[GroundingChunk]:
    """Read `candidates[0].grounding_metadata.grounding_chunks` into our model."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []

    metadata = getattr(candidates[0], "grounding_metadata", None)
    raw_chunks = getattr(metadata, "grounding_chunks", None) or []

    chunks = []
    for raw in raw_chunks:
        maps = getattr(raw, "maps", None)
        if maps is None:
            chunks.append(GroundingChunk())
            continue
        chunks.append(
            GroundingChunk(
                maps=MapsSource(
                    title=getattr(maps, "title", None),
                    uri=getattr(maps, "uri", None),
                )
            )
        )
    return chunks


class StoreQueryService:
    """
    Finds stores of one brand around a point.

    One attempt per search; failures surface as ServiceError subclasses.
    """

    def __init__(self, settings: Settings | None = None, client: Any = None) -> None:
        self.settings = settings or get_settings()
        self.client = client if client is not None else build_client(self.settings)

    def build_prompt(self, center: Coordinates) -> str:
        """Build the instruction sent to Gemini for a center point."""
        brand = self.settings.brand_name
        radius = f"{self.settings.search_radius_km:g}"

        return f"""Find all {brand} convenience stores within a {radius}km radius of: {center.latitude}, {center.longitude}.
Focus ONLY on {brand} stores.

IMPORTANT: For EVERY store you list, you MUST strictly include its coordinates in this exact line format so my system can map them:
[DATA] Name | Address | Latitude | Longitude

Example: [DATA] {brand} Ginza 7-Chome | 7-7-1 Ginza, Chuo City, Tokyo | 35.6698 | 139.7615"""

    def build_config(self, center: Coordinates) -> GenerateContentConfig:
        """Google Maps grounding tool biased to the center point."""
        retrieval_config = types.RetrievalConfig(
            lat_lng=types.LatLng(
                latitude=center.latitude,
                longitude=center.longitude,
            ),
            language_code=self.settings.language_code or None,
        )

        return GenerateContentConfig(
            tools=[Tool(google_maps=GoogleMaps())],
            tool_config=types.ToolConfig(retrieval_config=retrieval_config),
        )

    async def _generate(self, center: Coordinates) -> Any:
        if self.client is None:
            raise InvalidCredentialError(INVALID_KEY_MESSAGE)

        prompt = self.build_prompt(center)
        config = self.build_config(center)
        logger.info(
            "Built store search prompt",
            latitude=center.latitude,
            longitude=center.longitude,
            brand=self.settings.brand_name,
        )

        def _call_gemini():
            return self.client.models.generate_content(
                model=self.settings.model_name,
                contents=prompt,
                config=config,
            )

        # Run in a thread so the event loop stays free
        return await asyncio.wait_for(
            asyncio.to_thread(_call_gemini),
            timeout=self.settings.search_timeout_seconds or None,
        )

    async def search(self, center: Coordinates) -> SearchResult:
        """Ask Gemini for nearby stores and reconcile the answer."""
        try:
            response = await self._generate(center)
            if response is None:
                raise NoDataError(NO_DATA_MESSAGE)

            text = response.text or ""
            chunks = extract_grounding_chunks(response)
        except ServiceError as e:
            logger.error("Store search failed", error=e.message)
            raise
        except Exception as e:
            error = classify_error(e)
            logger.error("Store search failed", error=str(e), message=error.message)
            raise error from e

        logger.info("Received response from Gemini", length=len(text), grounding_chunks=len(chunks))

        lines = parse_data_lines(
            text,
            name_placeholder=self.settings.store_name_placeholder,
            address_placeholder=self.settings.store_address_placeholder,
        )
        skipped = [r for r in lines if isinstance(r, SkippedLine)]
        if skipped:
            logger.info("Skipped malformed data lines", count=len(skipped))

        stores = reconcile_lines(
            lines,
            chunks,
            name_placeholder=self.settings.store_name_placeholder,
            fallback_address=self.settings.fallback_address_placeholder,
        )
        logger.info(
            "Reconciled stores",
            total=len(stores),
            mappable=sum(1 for s in stores if s.is_mappable),
        )

        return SearchResult(text=text, stores=stores, grounding_chunks=chunks)
