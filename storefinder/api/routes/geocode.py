"""API route for turning a typed address into coordinates."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from storefinder.api.dependencies import get_geocoder
from storefinder.api.errors import to_http_exception
from storefinder.finder.exceptions import StoreFinderError
from storefinder.finder.geocoder import Geocoder
from storefinder.finder.models import Coordinates

router = APIRouter(prefix="/api/geocode", tags=["geocode"])


class GeocodeRequest(BaseModel):
    query: str


@router.post("")
async def geocode(
    request: GeocodeRequest,
    geocoder: Geocoder = Depends(get_geocoder),
) -> Coordinates:
    """Resolve a place description. 404 when it cannot be found."""
    try:
        coordinates = await geocoder.geocode(request.query)
    except StoreFinderError as e:
        raise to_http_exception(e) from e

    if coordinates is None:
        raise HTTPException(status_code=404, detail="Location not found")
    return coordinates
