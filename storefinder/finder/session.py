"""
Search session state.

Each user gets one SearchSession holding the displayed result set. Searches
are not cancelled; instead every search takes a token from begin(), and only
the holder of the newest token may write results back. A slower, older
search that resolves late is rejected instead of overwriting newer results.
"""

from collections import OrderedDict
from uuid import uuid4

import structlog

from storefinder.finder.exceptions import StaleSearchError
from storefinder.finder.models import Coordinates, SearchResult, SessionState, StoreRecord

logger = structlog.get_logger()


class SearchSession:
    """Result state for one user. Written only through its own methods."""

    def __init__(self, session_id: str | None = None) -> None:
        self.session_id = session_id or str(uuid4())
        self.loading = False
        self.center: Coordinates | None = None
        self.stores: list[StoreRecord] = []
        self.raw_text = ""
        self.error: str | None = None
        self._token = 0

    @property
    def current_token(self) -> int:
        return self._token

    def begin(self) -> int:
        """Start a search and return its token."""
        self._token += 1
        self.loading = True
        self.error = None
        return self._token

    def _check_current(self, token: int) -> None:
        if token != self._token:
            logger.warning(
                "Discarding stale search",
                session_id=self.session_id,
                token=token,
                current=self._token,
            )
            raise StaleSearchError(token, self._token)

    def complete(self, token: int, center: Coordinates, result: SearchResult) -> None:
        """Replace the result set wholesale with a finished search."""
        self._check_current(token)
        self.loading = False
        self.error = None
        self.center = center
        self.stores = list(result.stores)
        self.raw_text = result.text

    def fail(self, token: int, message: str) -> None:
        """Record a failed search and clear the stale result set."""
        self._check_current(token)
        self.loading = False
        self.error = message
        self.center = None
        self.stores = []
        self.raw_text = ""

    def snapshot(self) -> SessionState:
        return SessionState(
            session_id=self.session_id,
            loading=self.loading,
            request_token=self._token,
            center=self.center,
            stores=list(self.stores),
            raw_text=self.raw_text,
            error=self.error,
        )


class SessionRegistry:
    """
    In-memory sessions keyed by id. Nothing is persisted.

    At most `max_sessions` are kept; creating one past the cap drops the
    least recently used.
    """

    def __init__(self, max_sessions: int = 1000) -> None:
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, SearchSession] = OrderedDict()

    def get(self, session_id: str) -> SearchSession | None:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def get_or_create(self, session_id: str | None = None) -> SearchSession:
        if session_id and session_id in self._sessions:
            self._sessions.move_to_end(session_id)
            return self._sessions[session_id]
        session = SearchSession(session_id)
        self._sessions[session.session_id] = session
        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.info("Evicted idle session", session_id=evicted_id)
        return session

    def __len__(self) -> int:
        return len(self._sessions)
