"""Error taxonomy for chat session operations.

Every error here is raised synchronously by a session manager operation.
Failures of the generation service during a turn are not exceptions: they
are rendered into the session's sink (see ``StreamFailure`` in
``claudecode.llm.chat.consumer``).
"""


class ChatSessionError(Exception):
    """Base exception for chat session errors."""

    def __init__(self, message: str, session_id: str | None = None):
        super().__init__(message)
        self.session_id = session_id


class CapacityExceededError(ChatSessionError):
    """The store is full even after evicting idle sessions."""

    def __init__(self, max_sessions: int):
        super().__init__(
            f"Maximum number of sessions ({max_sessions}) reached. "
            "Please close some sessions before starting a new one."
        )
        self.max_sessions = max_sessions


class SessionNotFoundError(ChatSessionError):
    """No session with the given ID."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found", session_id=session_id)


class SessionInactiveError(ChatSessionError):
    """The session exists but has been ended."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} is inactive", session_id=session_id)


class SessionBusyError(ChatSessionError):
    """A turn is already in flight for the session."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Session {session_id} is busy processing another message",
            session_id=session_id,
        )


class SinkHandleInUseError(ChatSessionError):
    """Another live session already renders into the sink handle."""

    def __init__(self, sink_handle: object):
        super().__init__(f"Sink handle {sink_handle!r} is already used by another session")
        self.sink_handle = sink_handle
