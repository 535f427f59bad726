"""ChatSessionManager is the public surface for session lifecycle and turns."""

import asyncio
import logging
import time
from collections.abc import Callable, Hashable
from datetime import datetime
from typing import Any

from claudecode.config import Settings
from claudecode.llm.chat.consumer import StreamConsumer, TurnState
from claudecode.llm.chat.models import SessionInfo
from claudecode.llm.chat.store import SessionStore
from claudecode.llm.service import GenerationService
from claudecode.sinks.base import Sink

logger = logging.getLogger(__name__)


class ChatSessionManager:
    """Manages chat session lifecycle and turns.

    Responsibilities:
    - Create, end and look up sessions (delegated to the SessionStore)
    - Run one StreamConsumer per send, rejecting concurrent sends
    - Switch models and the current session
    - Optionally sweep idle sessions from a background task
    """

    def __init__(
        self,
        service: GenerationService,
        sink: Sink,
        settings: Settings | None = None,
        store: SessionStore | None = None,
        flush_clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the session manager.

        Args:
            service: Source of stream events for each turn.
            sink: Display surface sessions render into.
            settings: Limits and defaults (library defaults if not given).
            store: Session store (a new one built from settings if not given).
            flush_clock: Monotonic time source for flush batching.
        """
        self._service = service
        self._sink = sink
        self._settings = settings or Settings()
        self._store = store or SessionStore(
            max_sessions=self._settings.max_sessions,
            session_timeout=self._settings.session_timeout,
        )
        self._flush_clock = flush_clock
        self._cleanup_task: asyncio.Task | None = None

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def sink(self) -> Sink:
        return self._sink

    @property
    def active_session_count(self) -> int:
        """Number of stored sessions."""
        return len(self._store)

    # --- Sessions ---

    def create_session(self, sink_handle: Hashable, model: str | None = None) -> str:
        """Create a session rendering into sink_handle and make it current.

        Args:
            sink_handle: Sink buffer owned by the new session.
            model: Model name; the configured default if not given.

        Returns:
            The new session ID.

        Raises:
            CapacityExceededError: If the store is full after eviction.
            SinkHandleInUseError: If a live session already owns sink_handle.
        """
        return self._store.create(sink_handle, model or self._settings.default_model)

    def end_session(self, session_id: str) -> bool:
        """End a session. Unknown IDs are ignored.

        A turn still running for the session stops writing to the sink.

        Returns:
            True if a session was ended.
        """
        return self._store.end(session_id) is not None

    def list_sessions(self) -> set[str]:
        return self._store.list_ids()

    def get_session_info(self, session_id: str) -> SessionInfo | None:
        session = self._store.get(session_id)
        return session.snapshot() if session else None

    def get_all_sessions(self) -> dict[str, SessionInfo]:
        return self._store.snapshot_all()

    def get_current_session(self) -> str | None:
        return self._store.get_current()

    def set_current_session(self, session_id: str) -> None:
        """Make a session current.

        Raises:
            SessionNotFoundError: If no session has this ID.
            SessionInactiveError: If the session has been ended.
        """
        self._store.set_current(session_id)

    async def switch_model(self, session_id: str, model: str) -> None:
        """Change the model used by the session's next turns.

        A "Switched to model" notice is written to the sink unless a turn is
        in flight for the session.

        Raises:
            SessionNotFoundError: If no session has this ID.
            SessionInactiveError: If the session has been ended.
        """
        session = self._store.touch(session_id)
        session.model = model
        logger.info(f"Session {session_id} switched to model {model}")

        # The in-flight turn owns the end of the buffer
        if session.is_processing:
            return
        await self._sink.append_lines(session.sink_handle, [f"Switched to model: {model}", ""])

    # --- Turns ---

    async def send_message(self, session_id: str, prompt: str) -> TurnState:
        """Send a prompt and render the response into the session's sink.

        Generation failures are rendered into the sink and do not raise.

        Args:
            session_id: Target session.
            prompt: The user prompt.

        Returns:
            The terminal state of the turn.

        Raises:
            SessionNotFoundError: If no session has this ID.
            SessionInactiveError: If the session has been ended.
            SessionBusyError: If a turn is already in flight for the session.
        """
        session = self._store.begin_turn(session_id)
        logger.info(f"Session {session_id}: sending prompt ({len(prompt)} chars) to {session.model}")

        consumer = StreamConsumer(
            session,
            self._service,
            self._sink,
            max_turns=self._settings.max_turns,
            flush_interval=self._settings.flush_interval,
            clock=self._flush_clock,
        )
        try:
            state = await consumer.run(prompt)
        finally:
            self._store.finish_turn(session)

        logger.info(f"Session {session_id}: turn finished ({state.value})")
        return state

    # --- Cleanup ---

    def cleanup_expired(self) -> int:
        """Evict ended and idle sessions.

        Returns:
            Number of sessions evicted.
        """
        return len(self._store.evict_expired())

    async def start_cleanup_task(self) -> None:
        """Start the background cleanup task."""
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info("Started chat session cleanup background task")

    async def stop_cleanup_task(self) -> None:
        """Stop the background cleanup task."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
            logger.info("Stopped chat session cleanup background task")

    async def _cleanup_loop(self) -> None:
        """Background loop that evicts idle sessions."""
        while True:
            try:
                await asyncio.sleep(self._settings.cleanup_interval_seconds)
                self.cleanup_expired()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.exception(f"Error in chat cleanup task: {e}")

    async def shutdown(self) -> None:
        """Stop background work and end all sessions."""
        await self.stop_cleanup_task()

        for session_id in self._store.list_ids():
            self.end_session(session_id)

        logger.info("Chat session manager shutdown complete")

    def get_stats(self) -> dict[str, Any]:
        """Get manager statistics."""
        sessions = self._store.snapshot_all()
        return {
            "active_sessions": len(sessions),
            "max_sessions": self._store.max_sessions,
            "processing_sessions": sum(1 for s in sessions.values() if s.is_processing),
            "current_session_id": self._store.get_current(),
            "oldest_session_age_seconds": self._oldest_session_age(
                self._store.now(), sessions
            ),
            "cleanup_task_running": self._cleanup_task is not None,
        }

    def _oldest_session_age(
        self, now: datetime, sessions: dict[str, SessionInfo]
    ) -> float | None:
        """Get age of oldest session in seconds."""
        if not sessions:
            return None
        oldest = min(s.created_at for s in sessions.values())
        return (now - oldest).total_seconds()
