"""SessionStore keeps the live sessions and the current-session pointer."""

import logging
import threading
from collections.abc import Callable, Hashable
from datetime import datetime, timedelta

from claudecode.llm.chat.errors import (
    CapacityExceededError,
    SessionBusyError,
    SessionInactiveError,
    SessionNotFoundError,
    SinkHandleInUseError,
)
from claudecode.llm.chat.models import SessionInfo
from claudecode.llm.chat.session import ChatSession

logger = logging.getLogger(__name__)

MAX_SESSIONS = 10
SESSION_TIMEOUT = timedelta(minutes=30)


class SessionStore:
    """Mapping of session ID to ChatSession with capacity and idle limits.

    Responsibilities:
    - Create sessions, evicting ended and idle ones first
    - Track the current session by ID
    - Atomic busy check for turns

    Every mutation happens under one lock. No method awaits, so the lock is
    never held while a stream or a sink write is pending.
    """

    def __init__(
        self,
        max_sessions: int = MAX_SESSIONS,
        session_timeout: timedelta = SESSION_TIMEOUT,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the store.

        Args:
            max_sessions: Upper bound on stored sessions after each create.
            session_timeout: Idle time after which a session is evicted.
            clock: Time source, replaceable in tests.
        """
        self._sessions: dict[str, ChatSession] = {}
        self._current_session_id: str | None = None
        self._max_sessions = max_sessions
        self._session_timeout = session_timeout
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def max_sessions(self) -> int:
        return self._max_sessions

    @property
    def session_timeout(self) -> timedelta:
        return self._session_timeout

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def now(self) -> datetime:
        return self._clock()

    # --- Lifecycle ---

    def create(self, sink_handle: Hashable, model: str) -> str:
        """Create an active session and make it current.

        Args:
            sink_handle: Sink buffer the session renders into.
            model: Model name for the session's turns.

        Returns:
            The new session ID.

        Raises:
            CapacityExceededError: If the store is still full after eviction.
            SinkHandleInUseError: If a live session already owns sink_handle.
        """
        with self._lock:
            self._evict_locked()

            if any(s.sink_handle == sink_handle for s in self._sessions.values()):
                raise SinkHandleInUseError(sink_handle)

            if len(self._sessions) >= self._max_sessions:
                raise CapacityExceededError(self._max_sessions)

            session = ChatSession(sink_handle=sink_handle, model=model, now=self._clock())
            while session.session_id in self._sessions:
                session = ChatSession(sink_handle=sink_handle, model=model, now=self._clock())

            self._sessions[session.session_id] = session
            self._current_session_id = session.session_id

        logger.info(
            f"Created chat session {session.session_id} with model {model} "
            f"(total sessions: {len(self._sessions)})"
        )
        return session.session_id

    def end(self, session_id: str) -> ChatSession | None:
        """Mark a session inactive and remove it.

        Unknown IDs are ignored.

        Returns:
            The ended session, or None if the ID was unknown.
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                return None
            session.active = False
            if self._current_session_id == session_id:
                self._current_session_id = None

        logger.info(f"Ended chat session {session_id}")
        return session

    def evict_expired(self) -> list[str]:
        """Remove ended sessions and sessions idle longer than the timeout.

        Returns:
            IDs of the evicted sessions.
        """
        with self._lock:
            return self._evict_locked()

    def _evict_locked(self) -> list[str]:
        now = self._clock()
        expired_ids = [
            sid for sid, s in self._sessions.items()
            if not s.active or now - s.last_activity > self._session_timeout
        ]

        for session_id in expired_ids:
            session = self._sessions.pop(session_id)
            session.active = False
            if self._current_session_id == session_id:
                self._current_session_id = None

        if expired_ids:
            logger.info(f"Evicted {len(expired_ids)} inactive or idle chat session(s)")

        return expired_ids

    # --- Lookup ---

    def get(self, session_id: str) -> ChatSession | None:
        """Get a session by ID without refreshing its activity."""
        return self._sessions.get(session_id)

    def require_active(self, session_id: str) -> ChatSession:
        """Get a session that can accept operations.

        Raises:
            SessionNotFoundError: If no session has this ID.
            SessionInactiveError: If the session has been ended.
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        if not session.active:
            raise SessionInactiveError(session_id)
        return session

    def touch(self, session_id: str) -> ChatSession:
        """Refresh the activity timestamp of an active session."""
        with self._lock:
            session = self.require_active(session_id)
            session.last_activity = self._clock()
            return session

    def list_ids(self) -> set[str]:
        return set(self._sessions)

    def snapshot_all(self) -> dict[str, SessionInfo]:
        """Return detached snapshots of every stored session."""
        with self._lock:
            return {sid: s.snapshot() for sid, s in self._sessions.items()}

    # --- Current session ---

    def get_current(self) -> str | None:
        """Return the current session ID, if it still names an active session."""
        with self._lock:
            session_id = self._current_session_id
            if session_id is None:
                return None
            session = self._sessions.get(session_id)
            if session is None or not session.active:
                self._current_session_id = None
                return None
            return session_id

    def set_current(self, session_id: str) -> None:
        """Make an active session current.

        Raises:
            SessionNotFoundError: If no session has this ID.
            SessionInactiveError: If the session has been ended.
        """
        with self._lock:
            session = self.require_active(session_id)
            session.last_activity = self._clock()
            self._current_session_id = session_id

    # --- Turns ---

    def begin_turn(self, session_id: str) -> ChatSession:
        """Claim a session for one turn.

        Raises:
            SessionNotFoundError: If no session has this ID.
            SessionInactiveError: If the session has been ended.
            SessionBusyError: If another turn is still in flight.
        """
        with self._lock:
            session = self.require_active(session_id)
            if session.is_processing:
                raise SessionBusyError(session_id)
            session.mark_processing(True)
            session.last_activity = self._clock()
            return session

    def finish_turn(self, session: ChatSession) -> None:
        """Release a session claimed by ``begin_turn``."""
        with self._lock:
            session.mark_processing(False)
