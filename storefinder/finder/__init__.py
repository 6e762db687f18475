"""
Store finder core.

Finds franchise stores near a point using Google GenAI with Google Maps
grounding, and reconciles the model's free-text answer into mappable records.
"""

from storefinder.finder.exceptions import (
    AcquisitionError,
    InvalidCredentialError,
    NoDataError,
    ServiceError,
    StaleSearchError,
    StoreFinderError,
)
from storefinder.finder.geocoder import Geocoder
from storefinder.finder.models import (
    Coordinates,
    GroundingChunk,
    MapView,
    SearchResult,
    StoreRecord,
)
from storefinder.finder.query_service import StoreQueryService
from storefinder.finder.reconciler import reconcile
from storefinder.finder.session import SearchSession, SessionRegistry

__all__ = [
    # Errors
    "AcquisitionError",
    "InvalidCredentialError",
    "NoDataError",
    "ServiceError",
    "StaleSearchError",
    "StoreFinderError",
    # Models
    "Coordinates",
    "GroundingChunk",
    "MapView",
    "SearchResult",
    "StoreRecord",
    # Services
    "Geocoder",
    "StoreQueryService",
    "SearchSession",
    "SessionRegistry",
    "reconcile",
]
