"""Chat session infrastructure for multi-session conversations.

This module provides the core abstractions for session-based chat:
- SessionStore: Sessions by ID, with capacity and idle-timeout limits
- StreamConsumer: Renders one turn's event stream into a sink
- FlushBuffer: Batches response lines into few sink writes
- ChatSessionManager: The public operations over all of the above
"""

from claudecode.llm.chat.consumer import StreamConsumer, StreamFailure, TurnState
from claudecode.llm.chat.errors import (
    CapacityExceededError,
    ChatSessionError,
    SessionBusyError,
    SessionInactiveError,
    SessionNotFoundError,
    SinkHandleInUseError,
)
from claudecode.llm.chat.flush import FlushBuffer, split_lines
from claudecode.llm.chat.manager import ChatSessionManager
from claudecode.llm.chat.models import SessionInfo
from claudecode.llm.chat.sanitize import sanitize_error_message
from claudecode.llm.chat.session import ChatSession
from claudecode.llm.chat.store import SessionStore

__all__ = [
    "CapacityExceededError",
    "ChatSession",
    "ChatSessionError",
    "ChatSessionManager",
    "FlushBuffer",
    "SessionBusyError",
    "SessionInactiveError",
    "SessionInfo",
    "SessionNotFoundError",
    "SessionStore",
    "SinkHandleInUseError",
    "StreamConsumer",
    "StreamFailure",
    "TurnState",
    "sanitize_error_message",
    "split_lines",
]
