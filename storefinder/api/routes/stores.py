"""
API routes for store search.

The client sends its position (or an address, or nothing to use the default
location); the response carries the list rows and the map payload for that
search.
"""

import math

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, model_validator

from storefinder.api.dependencies import (
    get_app_settings,
    get_geocoder,
    get_query_service,
    get_sessions,
)
from storefinder.api.errors import to_http_exception
from storefinder.config import Settings
from storefinder.finder.exceptions import AcquisitionError, StaleSearchError, StoreFinderError
from storefinder.finder.geocoder import Geocoder
from storefinder.finder.map_view import build_map_view, build_store_list
from storefinder.finder.models import (
    Coordinates,
    MapView,
    SessionState,
    StoreListItem,
    StoreRecord,
)
from storefinder.finder.query_service import StoreQueryService
from storefinder.finder.session import SearchSession, SessionRegistry

logger = structlog.get_logger()

router = APIRouter(prefix="/api/stores", tags=["stores"])

MANUAL_SEARCH_MESSAGE = "Could not find that location. Try searching for a nearby address."


# ══════════════════════════════════════════════════════════
# Request/Response Models
# ══════════════════════════════════════════════════════════


class SearchRequest(BaseModel):
    """Where to search. use_default wins, then coordinates, then address."""

    session_id: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    address: str | None = None
    use_default: bool = False

    @model_validator(mode="after")
    def _check_coordinates(self) -> "SearchRequest":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        for value in (self.latitude, self.longitude):
            if value is not None and not math.isfinite(value):
                raise ValueError("coordinates must be finite numbers")
        return self


class SearchResponse(BaseModel):
    session_id: str
    center: Coordinates
    center_label: str = ""
    text: str
    stores: list[StoreRecord]
    items: list[StoreListItem]
    map: MapView
    total: int
    mappable_count: int


# ══════════════════════════════════════════════════════════
# Endpoints
# ══════════════════════════════════════════════════════════


@router.post("/search")
async def search_stores(
    request: SearchRequest,
    service: StoreQueryService = Depends(get_query_service),
    geocoder: Geocoder = Depends(get_geocoder),
    sessions: SessionRegistry = Depends(get_sessions),
    settings: Settings = Depends(get_app_settings),
) -> SearchResponse:
    """
    Search for stores around a point.

    Any failure clears the session's previous results. A search that
    finishes after a newer one on the same session gets a 409.
    """
    session = sessions.get_or_create(request.session_id)
    token = session.begin()

    try:
        center, label = await _resolve_center(request, geocoder, settings)
        result = await service.search(center)
    except StoreFinderError as e:
        _fail_session(session, token, e.message)
        raise to_http_exception(e) from e

    try:
        session.complete(token, center, result)
    except StaleSearchError as e:
        raise to_http_exception(e) from e

    map_view = build_map_view(
        center,
        result.stores,
        radius_km=settings.search_radius_km,
        zoom=settings.map_zoom,
        center_label=label,
    )

    logger.info(
        "Search complete",
        session_id=session.session_id,
        total=len(result.stores),
        mappable=len(map_view.markers),
    )

    return SearchResponse(
        session_id=session.session_id,
        center=center,
        center_label=label,
        text=result.text,
        stores=result.stores,
        items=build_store_list(result.stores, origin=center),
        map=map_view,
        total=len(result.stores),
        mappable_count=len(map_view.markers),
    )


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    sessions: SessionRegistry = Depends(get_sessions),
) -> SessionState:
    """Current state of a search session."""
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session.snapshot()


# ══════════════════════════════════════════════════════════
# Helper Functions
# ══════════════════════════════════════════════════════════


async def _resolve_center(
    request: SearchRequest,
    geocoder: Geocoder,
    settings: Settings,
) -> tuple[Coordinates, str]:
    """Pick the search center: default if asked, explicit point, address, default."""
    default = Coordinates(
        latitude=settings.default_latitude,
        longitude=settings.default_longitude,
    )
    if request.use_default:
        return default, settings.default_location_label

    if request.latitude is not None and request.longitude is not None:
        return Coordinates(latitude=request.latitude, longitude=request.longitude), ""

    if request.address and request.address.strip():
        coordinates = await geocoder.geocode(request.address)
        if coordinates is None:
            raise AcquisitionError(MANUAL_SEARCH_MESSAGE)
        return coordinates, request.address.strip()

    return default, settings.default_location_label


def _fail_session(session: SearchSession, token: int, message: str) -> None:
    """Record a failure unless a newer search already owns the session."""
    if token == session.current_token:
        session.fail(token, message)
    else:
        logger.warning("Failure from superseded search ignored", session_id=session.session_id, token=token)
