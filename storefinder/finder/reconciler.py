"""
Result reconciliation.

Turns the free-text Gemini answer into StoreRecords and merges them with the
Google Maps grounding metadata returned alongside it.

The only structured part of the answer is the data line the prompt asks for:

    [DATA] <name> | <address> | <lat> | <lng>

The model does not always follow it, so every line is parsed on its own and
a bad line is skipped without affecting the others. Everything here is pure:
same input, same output.
"""

import math
import re
from collections.abc import Iterable, Sequence

from storefinder.finder.models import (
    GroundingChunk,
    LineResult,
    ParsedLine,
    SkippedLine,
    StoreRecord,
)

DATA_MARKER = "[DATA]"
FIELD_SEPARATOR = "|"

DEFAULT_NAME_PLACEHOLDER = "7-Eleven"
DEFAULT_ADDRESS_PLACEHOLDER = "Tap the map for details"
DEFAULT_FALLBACK_ADDRESS = "Open for directions"

# Leading decimal or scientific number; trailing text such as "." or "°" is ignored
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_coordinate(value: str) -> float | None:
    """
    Parse a coordinate field from its leading number.

    "139.7615." and "35.6660°" parse; "nan", "inf" and fields that do not
    start with a number do not. Returns None unless the result is finite.
    """
    match = _DECIMAL_RE.match(value.strip())
    if not match:
        return None
    number = float(match.group())
    if not math.isfinite(number):
        return None
    return number


def extract_data_lines(raw_text: str) -> list[tuple[int, str]]:
    """Return (1-based line number, line) for every line holding the marker."""
    return [
        (number, line)
        for number, line in enumerate(raw_text.splitlines(), start=1)
        if DATA_MARKER in line
    ]


def parse_data_line(
    line: str,
    line_number: int = 0,
    name_placeholder: str = DEFAULT_NAME_PLACEHOLDER,
    address_placeholder: str = DEFAULT_ADDRESS_PLACEHOLDER,
) -> LineResult:
    """
    Parse one `[DATA]` line.

    Fields after the marker are split on `|` and trimmed, then mapped to
    name, address, lat, lng. Text after a second marker on the same line is
    ignored. Empty name/address fall back to the placeholders; lat and lng
    must both be finite decimals or the line is skipped.
    """
    if DATA_MARKER not in line:
        return SkippedLine(line_number=line_number, raw=line, reason="missing data marker")

    content = line.split(DATA_MARKER)[1].strip()
    parts = [part.strip() for part in content.split(FIELD_SEPARATOR)]

    if len(parts) < 4:
        return SkippedLine(
            line_number=line_number,
            raw=line,
            reason=f"expected 4 fields, found {len(parts)}",
        )

    lat = parse_coordinate(parts[2])
    lng = parse_coordinate(parts[3])
    if lat is None or lng is None:
        return SkippedLine(line_number=line_number, raw=line, reason="latitude/longitude not numeric")

    record = StoreRecord(
        name=parts[0] or name_placeholder,
        address=parts[1] or address_placeholder,
        lat=lat,
        lng=lng,
    )
    return ParsedLine(line_number=line_number, raw=line, record=record)


def parse_data_lines(
    raw_text: str,
    name_placeholder: str = DEFAULT_NAME_PLACEHOLDER,
    address_placeholder: str = DEFAULT_ADDRESS_PLACEHOLDER,
) -> list[LineResult]:
    """Parse every data line in the text, keeping skipped lines for reporting."""
    results: list[LineResult] = []
    for number, line in extract_data_lines(raw_text):
        try:
            result = parse_data_line(
                line,
                line_number=number,
                name_placeholder=name_placeholder,
                address_placeholder=address_placeholder,
            )
        except ValueError as e:
            result = SkippedLine(line_number=number, raw=line, reason=str(e))
        results.append(result)
    return results


def match_grounding(name: str, chunks: Iterable[GroundingChunk]) -> GroundingChunk | None:
    """
    Find the grounding chunk for a store name.

    A chunk matches when its title, case-folded, contains the name or is
    contained in it. The first matching chunk wins; there is no scoring.
    Chunks without maps data or with an empty title never match.
    """
    folded_name = name.casefold()
    for chunk in chunks:
        if chunk.maps is None or not chunk.maps.title:
            continue
        folded_title = chunk.maps.title.casefold()
        if folded_title in folded_name or folded_name in folded_title:
            return chunk
    return None


def fallback_from_grounding(
    chunks: Iterable[GroundingChunk],
    name_placeholder: str = DEFAULT_NAME_PLACEHOLDER,
    fallback_address: str = DEFAULT_FALLBACK_ADDRESS,
) -> list[StoreRecord]:
    """
    Build records straight from grounding metadata.

    Grounding chunks carry no coordinates, so these records are listed but
    never mapped.
    """
    return [
        StoreRecord(
            name=chunk.maps.title or name_placeholder,
            address=fallback_address,
            uri=chunk.maps.uri,
        )
        for chunk in chunks
        if chunk.maps is not None
    ]


def reconcile(
    raw_text: str,
    grounding_chunks: Sequence[GroundingChunk],
    name_placeholder: str = DEFAULT_NAME_PLACEHOLDER,
    address_placeholder: str = DEFAULT_ADDRESS_PLACEHOLDER,
    fallback_address: str = DEFAULT_FALLBACK_ADDRESS,
) -> list[StoreRecord]:
    """Parse the answer and attach grounding links, preserving answer order."""
    return reconcile_lines(
        parse_data_lines(raw_text, name_placeholder, address_placeholder),
        grounding_chunks,
        name_placeholder=name_placeholder,
        fallback_address=fallback_address,
    )


def reconcile_lines(
    lines: Iterable[LineResult],
    grounding_chunks: Sequence[GroundingChunk],
    name_placeholder: str = DEFAULT_NAME_PLACEHOLDER,
    fallback_address: str = DEFAULT_FALLBACK_ADDRESS,
) -> list[StoreRecord]:
    """Same as `reconcile` for lines that were already parsed."""
    parsed = [result.record for result in lines if isinstance(result, ParsedLine)]

    if not parsed:
        return fallback_from_grounding(grounding_chunks, name_placeholder, fallback_address)

    stores = []
    for record in parsed:
        match = match_grounding(record.name, grounding_chunks)
        if match is not None:
            record = record.model_copy(update={"uri": match.maps.uri, "title": match.maps.title})
        stores.append(record)
    return stores


def mappable_stores(stores: Iterable[StoreRecord]) -> list[StoreRecord]:
    """Records with both coordinates, in their original order."""
    return [store for store in stores if store.is_mappable]
