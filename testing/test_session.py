"""Tests for storefinder.finder.session."""

import pytest

from storefinder.finder.exceptions import StaleSearchError
from storefinder.finder.models import Coordinates, SearchResult, StoreRecord
from storefinder.finder.session import SearchSession, SessionRegistry

CENTER = Coordinates(latitude=35.0, longitude=139.0)
OTHER_CENTER = Coordinates(latitude=34.0, longitude=135.0)


def _result(*names: str) -> SearchResult:
    return SearchResult(
        text="\n".join(names),
        stores=[StoreRecord(name=n, address="addr", lat=35.0, lng=139.0) for n in names],
    )


class TestSearchSession:
    def test_begin_sets_loading_and_increments_token(self):
        session = SearchSession()
        first = session.begin()
        second = session.begin()

        assert second == first + 1
        assert session.loading is True

    def test_complete_replaces_results(self):
        session = SearchSession()
        session.complete(session.begin(), CENTER, _result("A", "B"))
        session.complete(session.begin(), OTHER_CENTER, _result("C"))

        state = session.snapshot()
        assert state.loading is False
        assert state.center == OTHER_CENTER
        assert [s.name for s in state.stores] == ["C"]
        assert state.raw_text == "C"

    def test_stale_completion_is_rejected(self):
        session = SearchSession()
        old = session.begin()
        new = session.begin()
        session.complete(new, OTHER_CENTER, _result("new"))

        with pytest.raises(StaleSearchError) as exc_info:
            session.complete(old, CENTER, _result("old"))

        assert exc_info.value.token == old
        assert exc_info.value.current == new
        assert [s.name for s in session.stores] == ["new"]
        assert session.center == OTHER_CENTER

    def test_older_search_resolving_first_does_not_clear_loading(self):
        session = SearchSession()
        old = session.begin()
        session.begin()

        with pytest.raises(StaleSearchError):
            session.complete(old, CENTER, _result("old"))
        assert session.loading is True

    def test_fail_clears_results(self):
        session = SearchSession()
        session.complete(session.begin(), CENTER, _result("A"))

        session.fail(session.begin(), "Error: boom")

        state = session.snapshot()
        assert state.loading is False
        assert state.error == "Error: boom"
        assert state.stores == []
        assert state.center is None

    def test_begin_clears_previous_error(self):
        session = SearchSession()
        session.fail(session.begin(), "Error: boom")
        session.begin()
        assert session.error is None

    def test_stale_failure_is_rejected(self):
        session = SearchSession()
        old = session.begin()
        session.complete(session.begin(), CENTER, _result("A"))

        with pytest.raises(StaleSearchError):
            session.fail(old, "late failure")
        assert session.error is None
        assert len(session.stores) == 1


class TestSessionRegistry:
    def test_creates_with_new_id(self):
        registry = SessionRegistry()
        session = registry.get_or_create()
        assert session.session_id
        assert registry.get(session.session_id) is session

    def test_returns_existing(self):
        registry = SessionRegistry()
        session = registry.get_or_create("abc")
        assert registry.get_or_create("abc") is session
        assert len(registry) == 1

    def test_unknown_id(self):
        assert SessionRegistry().get("missing") is None

    def test_oldest_session_is_evicted_past_the_cap(self):
        registry = SessionRegistry(max_sessions=2)
        registry.get_or_create("a")
        registry.get_or_create("b")
        registry.get_or_create("c")

        assert len(registry) == 2
        assert registry.get("a") is None
        assert registry.get("b") is not None
        assert registry.get("c") is not None

    def test_recently_used_session_survives(self):
        registry = SessionRegistry(max_sessions=2)
        first = registry.get_or_create("a")
        registry.get_or_create("b")
        registry.get("a")
        registry.get_or_create("c")

        assert registry.get("a") is first
        assert registry.get("b") is None
