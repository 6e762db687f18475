"""
Map and list payloads.

The map widget itself lives in the front end; these builders produce what it
draws: a centered view with a radius circle and one pin per mappable store,
plus the rows of the results list.
"""

from collections.abc import Sequence
from html import escape
from urllib.parse import quote, urlencode

from storefinder.finder.models import (
    Coordinates,
    MapMarker,
    MapView,
    StoreListItem,
    StoreRecord,
)

GOOGLE_MAPS_DIR_URL = "https://www.google.com/maps/dir/"
GOOGLE_MAPS_SEARCH_URL = "https://www.google.com/maps/search/"


def directions_url(origin: Coordinates, store: StoreRecord) -> str:
    """Walking directions from the search center to a store."""
    params = {
        "api": "1",
        "origin": f"{origin.latitude},{origin.longitude}",
        "destination": f"{store.lat},{store.lng}",
        "travelmode": "walking",
    }
    return f"{GOOGLE_MAPS_DIR_URL}?{urlencode(params, safe=',')}"


def search_url(store: StoreRecord) -> str:
    # Same escaping as encodeURIComponent, so "/" is encoded too
    query = quote(f"{store.name} {store.address}", safe="!*'()")
    return f"{GOOGLE_MAPS_SEARCH_URL}?api=1&query={query}"


def store_link(store: StoreRecord, origin: Coordinates | None = None) -> str:
    """
    Best link for a store.

    Walking directions when both ends are known, otherwise the grounding
    link, otherwise a plain Google Maps search for the name and address.
    """
    if origin is not None and store.is_mappable:
        return directions_url(origin, store)
    if store.uri:
        return store.uri
    return search_url(store)


def _popup_html(store: StoreRecord) -> str:
    parts = [
        '<div class="store-popup">',
        f"<h4>{escape(store.name)}</h4>",
        f"<p>{escape(store.address)}</p>",
    ]
    if store.uri:
        parts.append(f'<a href="{escape(store.uri, quote=True)}" target="_blank">View details</a>')
    parts.append("</div>")
    return "".join(parts)


def build_map_view(
    center: Coordinates,
    stores: Sequence[StoreRecord],
    radius_km: float = 5.0,
    zoom: int = 15,
    center_label: str = "",
) -> MapView:
    """Build the map payload. Stores without coordinates get no marker."""
    markers = [
        MapMarker(
            index=index,
            name=store.name,
            address=store.address,
            lat=store.lat,
            lng=store.lng,
            uri=store.uri,
            directions_url=directions_url(center, store),
            popup_html=_popup_html(store),
        )
        for index, store in enumerate(stores)
        if store.is_mappable
    ]

    return MapView(
        center=center,
        center_label=center_label,
        zoom=zoom,
        radius_m=radius_km * 1000,
        markers=markers,
    )


def build_store_list(
    stores: Sequence[StoreRecord],
    origin: Coordinates | None = None,
) -> list[StoreListItem]:
    """Rows for the results list, every store included."""
    return [
        StoreListItem(
            name=store.name,
            address=store.address,
            link=store_link(store, origin),
            mappable=store.is_mappable,
        )
        for store in stores
    ]
