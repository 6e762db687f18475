"""
Data models for the store finder.

Defines the search input (Coordinates), the reconciled output (StoreRecord,
SearchResult), the grounding metadata returned by Gemini (GroundingChunk),
and the payloads handed to the map and list sinks.
"""

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Coordinates(BaseModel):
    """A center point. Immutable once obtained."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float

    @field_validator("latitude", "longitude")
    @classmethod
    def _must_be_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinate must be a finite number")
        return value


class StoreRecord(BaseModel):
    """A single store parsed from the model answer."""

    name: str
    address: str
    lat: float | None = None
    lng: float | None = None
    uri: str | None = None  # canonical Google Maps link from grounding
    title: str | None = None  # grounding title the record was matched to

    @property
    def is_mappable(self) -> bool:
        return (
            self.lat is not None
            and self.lng is not None
            and math.isfinite(self.lat)
            and math.isfinite(self.lng)
        )


class MapsSource(BaseModel):
    """The `maps` part of a grounding chunk."""

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    uri: str | None = None


class GroundingChunk(BaseModel):
    """Grounding metadata entry. Read-only reference data."""

    model_config = ConfigDict(frozen=True)

    maps: MapsSource | None = None


class SearchResult(BaseModel):
    """Raw model text plus the reconciled stores, in parse order."""

    text: str
    stores: list[StoreRecord] = Field(default_factory=list)
    grounding_chunks: list[GroundingChunk] = Field(default_factory=list)


# ─── Per-line parse results ───────────────────────────────


class ParsedLine(BaseModel):
    """A `[DATA]` line that produced a record."""

    kind: Literal["parsed"] = "parsed"
    line_number: int
    raw: str
    record: StoreRecord


class SkippedLine(BaseModel):
    """A `[DATA]` line that was dropped, and why."""

    kind: Literal["skipped"] = "skipped"
    line_number: int
    raw: str
    reason: str


LineResult = ParsedLine | SkippedLine


# ─── Sink payloads ────────────────────────────────────────


class MapMarker(BaseModel):
    """One pin on the map."""

    index: int
    name: str
    address: str
    lat: float
    lng: float
    uri: str | None = None
    directions_url: str
    popup_html: str


class MapView(BaseModel):
    """Everything a map widget needs to draw a result set."""

    center: Coordinates
    center_label: str = ""
    zoom: int = 15
    radius_m: float
    markers: list[MapMarker] = Field(default_factory=list)


class StoreListItem(BaseModel):
    """One row of the results list."""

    name: str
    address: str
    link: str
    mappable: bool


class SessionState(BaseModel):
    """Snapshot of a search session."""

    session_id: str
    loading: bool = False
    request_token: int = 0
    center: Coordinates | None = None
    stores: list[StoreRecord] = Field(default_factory=list)
    raw_text: str = ""
    error: str | None = None
