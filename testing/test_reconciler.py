"""Tests for storefinder.finder.reconciler."""

import pytest

from storefinder.finder.models import GroundingChunk, ParsedLine, SkippedLine, StoreRecord
from storefinder.finder.reconciler import (
    DEFAULT_ADDRESS_PLACEHOLDER,
    DEFAULT_FALLBACK_ADDRESS,
    DEFAULT_NAME_PLACEHOLDER,
    extract_data_lines,
    fallback_from_grounding,
    mappable_stores,
    match_grounding,
    parse_coordinate,
    parse_data_line,
    parse_data_lines,
    reconcile,
    reconcile_lines,
)
from testing.sample_inputs import (
    GINZA_ANSWER,
    GINZA_CHUNKS,
    MIXED_ANSWER,
    PROSE_ONLY_ANSWER,
    maps_chunk,
)


class TestParseCoordinate:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("35.6698", 35.6698),
            (" -118.2437 ", -118.2437),
            ("+10", 10.0),
            (".5", 0.5),
            ("1e2", 100.0),
            ("139.7615.", 139.7615),
            ("35.6660°", 35.666),
            ("1_0", 1.0),
        ],
    )
    def test_accepts_decimals(self, value, expected):
        assert parse_coordinate(value) == expected

    @pytest.mark.parametrize("value", ["", "bad", "nan", "inf", "-Infinity", "1e999", "°35", "about 35"])
    def test_rejects_non_decimals(self, value):
        assert parse_coordinate(value) is None


class TestParseDataLine:
    def test_well_formed_line(self):
        result = parse_data_line("[DATA] A | B | 10.5 | 20.25")
        assert isinstance(result, ParsedLine)
        assert result.record == StoreRecord(name="A", address="B", lat=10.5, lng=20.25)

    def test_text_before_marker_is_ignored(self):
        result = parse_data_line("3. [DATA] Store | Addr | 1.0 | 2.0")
        assert isinstance(result, ParsedLine)
        assert result.record.name == "Store"

    def test_empty_name_and_address_use_placeholders(self):
        result = parse_data_line("[DATA]  |  | 1.0 | 2.0")
        assert isinstance(result, ParsedLine)
        assert result.record.name == DEFAULT_NAME_PLACEHOLDER
        assert result.record.address == DEFAULT_ADDRESS_PLACEHOLDER

    def test_custom_placeholders(self):
        result = parse_data_line("[DATA] | | 1 | 2", name_placeholder="Shop", address_placeholder="?")
        assert result.record.name == "Shop"
        assert result.record.address == "?"

    def test_non_numeric_latitude_is_skipped(self):
        result = parse_data_line("[DATA] Store B | 2 Side St | bad | 139.1", line_number=3)
        assert isinstance(result, SkippedLine)
        assert result.line_number == 3
        assert "numeric" in result.reason

    def test_non_numeric_longitude_is_skipped(self):
        assert isinstance(parse_data_line("[DATA] S | A | 35.0 | east"), SkippedLine)

    def test_too_few_fields_is_skipped(self):
        result = parse_data_line("[DATA] Store | 35.0 | 139.0")
        assert isinstance(result, SkippedLine)
        assert "4 fields" in result.reason

    def test_extra_fields_are_ignored(self):
        result = parse_data_line("[DATA] S | A | 1.0 | 2.0 | open 24h")
        assert isinstance(result, ParsedLine)
        assert (result.record.lat, result.record.lng) == (1.0, 2.0)

    def test_line_without_marker_is_skipped(self):
        assert isinstance(parse_data_line("Store | A | 1 | 2"), SkippedLine)


class TestExtractDataLines:
    def test_keeps_only_marker_lines_with_numbers(self):
        lines = extract_data_lines(MIXED_ANSWER)
        assert [n for n, _ in lines] == [1, 3]

    def test_no_marker_lines(self):
        assert extract_data_lines(PROSE_ONLY_ANSWER) == []

    def test_crlf_line_endings(self):
        text = "[DATA] A | B | 1 | 2\r\n[DATA] C | D | 3 | 4\r\n"
        assert len(extract_data_lines(text)) == 2


class TestParseDataLines:
    def test_partial_failure_isolation(self):
        results = parse_data_lines(GINZA_ANSWER)
        assert [type(r) for r in results] == [ParsedLine, ParsedLine, SkippedLine]


class TestMatchGrounding:
    def test_title_inside_name(self):
        chunk = maps_chunk("Ginza", "https://maps.google.com/?cid=1")
        assert match_grounding("7-Eleven Ginza", [chunk]) is chunk

    def test_name_inside_title(self):
        chunk = maps_chunk("7-Eleven Ginza 7-Chome Store", "https://maps.google.com/?cid=2")
        assert match_grounding("7-Eleven Ginza 7-Chome", [chunk]) is chunk

    def test_case_insensitive(self):
        chunk = maps_chunk("GINZA", "u")
        assert match_grounding("7-eleven ginza", [chunk]) is chunk

    def test_first_match_wins(self):
        first = maps_chunk("Ginza", "first")
        second = maps_chunk("7-Eleven Ginza", "second")
        assert match_grounding("7-Eleven Ginza", [first, second]) is first

    def test_no_match(self):
        chunks = [maps_chunk("Shimbashi", "a"), maps_chunk("Yurakucho", "b")]
        assert match_grounding("7-Eleven Ginza", chunks) is None

    def test_chunks_without_maps_or_title_never_match(self):
        chunks = [GroundingChunk(), maps_chunk("", "empty"), maps_chunk(None, "none")]
        assert match_grounding("7-Eleven Ginza", chunks) is None


class TestFallbackFromGrounding:
    def test_one_record_per_maps_chunk(self):
        chunks = [maps_chunk("7-Eleven Shimbashi", "u1"), GroundingChunk(), maps_chunk(None, "u2")]
        records = fallback_from_grounding(chunks)
        assert records == [
            StoreRecord(name="7-Eleven Shimbashi", address=DEFAULT_FALLBACK_ADDRESS, uri="u1"),
            StoreRecord(name=DEFAULT_NAME_PLACEHOLDER, address=DEFAULT_FALLBACK_ADDRESS, uri="u2"),
        ]

    def test_fallback_records_have_no_coordinates(self):
        records = fallback_from_grounding(GINZA_CHUNKS)
        assert all(r.lat is None and r.lng is None for r in records)
        assert mappable_stores(records) == []


class TestReconcile:
    def test_empty_text_and_no_grounding(self):
        assert reconcile("", []) == []

    def test_prose_without_grounding(self):
        assert reconcile(PROSE_ONLY_ANSWER, []) == []

    def test_mixed_answer_scenario(self):
        stores = reconcile(MIXED_ANSWER, [])
        assert stores == [StoreRecord(name="Store A", address="1 Main St", lat=35.0, lng=139.0)]
        assert stores[0].uri is None

    def test_attaches_grounding_uri_and_title(self):
        stores = reconcile(GINZA_ANSWER, GINZA_CHUNKS)
        assert [s.name for s in stores] == ["7-Eleven Ginza 7-Chome", "7-Eleven Ginza Corridor"]
        assert stores[0].uri == "https://maps.google.com/?cid=1001"
        assert stores[0].title == "7-Eleven Ginza 7-Chome"
        assert stores[1].uri is None
        assert stores[1].title is None

    def test_substring_match_example(self):
        chunk = maps_chunk("Ginza", "https://maps.google.com/?cid=42")
        stores = reconcile("[DATA] 7-Eleven Ginza | 1 Ginza | 35.67 | 139.76", [chunk])
        assert stores[0].uri == "https://maps.google.com/?cid=42"

    def test_preserves_answer_order(self):
        text = "\n".join(
            f"[DATA] Store {c} | {c} St | 35.{i} | 139.{i}" for i, c in enumerate("CAB", start=1)
        )
        assert [s.name for s in reconcile(text, [])] == ["Store C", "Store A", "Store B"]

    def test_falls_back_to_grounding_when_nothing_parses(self):
        stores = reconcile(PROSE_ONLY_ANSWER, GINZA_CHUNKS)
        assert [s.name for s in stores] == [c.maps.title for c in GINZA_CHUNKS]
        assert all(s.address == DEFAULT_FALLBACK_ADDRESS for s in stores)
        assert all(not s.is_mappable for s in stores)

    def test_no_fallback_when_lines_parse(self):
        stores = reconcile(MIXED_ANSWER, GINZA_CHUNKS)
        assert len(stores) == 1

    def test_trailing_punctuation_after_coordinates(self):
        text = (
            "[DATA] 7-Eleven Ginza | 7-7-1 Ginza | 35.6698 | 139.7615.\n"
            "[DATA] 7-Eleven Shimbashi | 2-1 Shimbashi | 35.6660° | 139.7580°"
        )
        stores = reconcile(text, [])
        assert [(s.name, s.lat, s.lng) for s in stores] == [
            ("7-Eleven Ginza", 35.6698, 139.7615),
            ("7-Eleven Shimbashi", 35.666, 139.758),
        ]

    def test_reconcile_lines_matches_reconcile(self):
        lines = parse_data_lines(GINZA_ANSWER)
        assert reconcile_lines(lines, GINZA_CHUNKS) == reconcile(GINZA_ANSWER, GINZA_CHUNKS)

    def test_reconcile_lines_falls_back_when_all_skipped(self):
        lines = parse_data_lines(MIXED_ANSWER.replace("35.0", "n/a"))
        assert all(isinstance(line, SkippedLine) for line in lines)
        stores = reconcile_lines(lines, GINZA_CHUNKS, fallback_address="Directions")
        assert [s.address for s in stores] == ["Directions"] * len(GINZA_CHUNKS)

    def test_idempotent(self):
        first = reconcile(GINZA_ANSWER, GINZA_CHUNKS)
        second = reconcile(GINZA_ANSWER, GINZA_CHUNKS)
        assert [s.model_dump() for s in first] == [s.model_dump() for s in second]

        fallback_first = reconcile(PROSE_ONLY_ANSWER, GINZA_CHUNKS)
        fallback_second = reconcile(PROSE_ONLY_ANSWER, GINZA_CHUNKS)
        assert fallback_first == fallback_second

    def test_does_not_mutate_grounding(self):
        before = [c.model_dump() for c in GINZA_CHUNKS]
        reconcile(GINZA_ANSWER, GINZA_CHUNKS)
        assert [c.model_dump() for c in GINZA_CHUNKS] == before


class TestMappableStores:
    def test_filters_and_keeps_order(self):
        stores = [
            StoreRecord(name="a", address="x", lat=1.0, lng=2.0),
            StoreRecord(name="b", address="x", lat=1.0),
            StoreRecord(name="c", address="x"),
            StoreRecord(name="d", address="x", lat=3.0, lng=4.0),
        ]
        assert [s.name for s in mappable_stores(stores)] == ["a", "d"]
