"""ChatSession holds the state of one conversation bound to a sink buffer."""

import uuid
from collections.abc import Hashable
from datetime import datetime

from claudecode.llm.chat.models import SessionInfo
from claudecode.llm.events import AssistantMessageBody


class ChatSession:
    """A conversational context bound to one sink buffer and one model.

    The session maintains:
    - The model used for the next turn
    - The assistant message history, append-only
    - Activity timestamps used for idle eviction
    - Whether it is still active and whether a turn is in flight

    Instances are owned by a SessionStore; callers outside the store only
    ever see ``SessionInfo`` snapshots.
    """

    def __init__(
        self,
        sink_handle: Hashable,
        model: str,
        now: datetime,
        session_id: str | None = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.model = model
        self.sink_handle = sink_handle
        self.history: list[AssistantMessageBody] = []
        self.active = True
        self.created_at = now
        self.last_activity = now
        self._is_processing = False

    @property
    def is_processing(self) -> bool:
        """Whether a turn is currently in flight."""
        return self._is_processing

    def mark_processing(self, processing: bool) -> None:
        self._is_processing = processing

    def record_message(self, message: AssistantMessageBody) -> None:
        """Append a completed assistant message to the history."""
        self.history.append(message)

    def snapshot(self) -> SessionInfo:
        """Return a detached copy of the session state."""
        return SessionInfo(
            session_id=self.session_id,
            model=self.model,
            sink_handle=self.sink_handle,
            history=[m.model_copy(deep=True) for m in self.history],
            active=self.active,
            is_processing=self._is_processing,
            created_at=self.created_at,
            last_activity=self.last_activity,
            message_count=len(self.history),
        )

    def __repr__(self) -> str:
        return (
            f"ChatSession(id={self.session_id!r}, model={self.model!r}, "
            f"active={self.active}, messages={len(self.history)})"
        )
