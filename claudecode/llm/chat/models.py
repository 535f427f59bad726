"""Pydantic models for chat sessions."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from claudecode.llm.events import AssistantMessageBody


class SessionInfo(BaseModel):
    """Read-only snapshot of a chat session."""

    session_id: str
    model: str
    sink_handle: Any
    history: list[AssistantMessageBody] = Field(default_factory=list)
    active: bool = True
    is_processing: bool = False
    created_at: datetime
    last_activity: datetime
    message_count: int = 0


class CreateSessionRequest(BaseModel):
    """Request to create a new chat session."""

    sink_handle: str = Field(
        description="Identifier of the display buffer the session renders into",
    )
    model: str | None = Field(
        default=None,
        description="Model name (uses the configured default if not specified)",
    )


class CreateSessionResponse(BaseModel):
    """Response after creating a chat session."""

    session_id: str
    model: str
    sink_handle: str


class SendMessageRequest(BaseModel):
    """A prompt for an existing session."""

    prompt: str


class SendMessageResponse(BaseModel):
    """Outcome of one turn."""

    session_id: str
    state: str


class SwitchModelRequest(BaseModel):
    """Request to change the model of a session."""

    model: str


class SetCurrentSessionRequest(BaseModel):
    """Request to change the current session."""

    session_id: str


class CurrentSessionResponse(BaseModel):
    """The current session, if any."""

    session_id: str | None = None
