"""Chat session API endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from claudecode.llm.chat.errors import (
    CapacityExceededError,
    ChatSessionError,
    SessionBusyError,
    SessionInactiveError,
    SessionNotFoundError,
    SinkHandleInUseError,
)
from claudecode.llm.chat.manager import ChatSessionManager
from claudecode.llm.chat.models import (
    CreateSessionRequest,
    CreateSessionResponse,
    CurrentSessionResponse,
    SendMessageRequest,
    SendMessageResponse,
    SessionInfo,
    SetCurrentSessionRequest,
    SwitchModelRequest,
)
from claudecode.llm.chat.sanitize import sanitize_error_message

logger = logging.getLogger(__name__)

router = APIRouter()


def get_session_manager(request: Request) -> ChatSessionManager:
    """Get the manager attached to the application."""
    return request.app.state.manager


def _to_http_error(error: ChatSessionError) -> HTTPException:
    """Map a session error to an HTTP error response."""
    if isinstance(error, SessionNotFoundError):
        status_code = 404
    elif isinstance(error, SessionInactiveError):
        status_code = 410
    elif isinstance(error, (SessionBusyError, SinkHandleInUseError)):
        status_code = 409
    elif isinstance(error, CapacityExceededError):
        status_code = 429
    else:
        status_code = 400
    return HTTPException(status_code=status_code, detail=sanitize_error_message(error))


@router.post("/sessions", status_code=201)
async def create_session(
    request: CreateSessionRequest,
    manager: ChatSessionManager = Depends(get_session_manager),
) -> CreateSessionResponse:
    """Create a session that renders into the given sink buffer."""
    try:
        session_id = manager.create_session(request.sink_handle, request.model)
    except ChatSessionError as e:
        raise _to_http_error(e) from e

    info = manager.get_session_info(session_id)
    return CreateSessionResponse(
        session_id=session_id,
        model=info.model if info else (request.model or ""),
        sink_handle=request.sink_handle,
    )


@router.get("/sessions")
async def list_sessions(
    manager: ChatSessionManager = Depends(get_session_manager),
) -> list[SessionInfo]:
    """List all stored sessions."""
    return list(manager.get_all_sessions().values())


@router.get("/sessions/current")
async def get_current_session(
    manager: ChatSessionManager = Depends(get_session_manager),
) -> CurrentSessionResponse:
    """Get the current session, if any."""
    return CurrentSessionResponse(session_id=manager.get_current_session())


@router.put("/sessions/current")
async def set_current_session(
    request: SetCurrentSessionRequest,
    manager: ChatSessionManager = Depends(get_session_manager),
) -> CurrentSessionResponse:
    """Make a session current."""
    try:
        manager.set_current_session(request.session_id)
    except ChatSessionError as e:
        raise _to_http_error(e) from e
    return CurrentSessionResponse(session_id=request.session_id)


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    manager: ChatSessionManager = Depends(get_session_manager),
) -> SessionInfo:
    """Get information about a specific session."""
    info = manager.get_session_info(session_id)
    if info is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return info


@router.delete("/sessions/{session_id}")
async def end_session(
    session_id: str,
    manager: ChatSessionManager = Depends(get_session_manager),
) -> dict[str, str]:
    """End a session. Ending an unknown session is not an error."""
    manager.end_session(session_id)
    return {"status": "ended", "session_id": session_id}


@router.post("/sessions/{session_id}/messages")
async def send_message(
    session_id: str,
    request: SendMessageRequest,
    manager: ChatSessionManager = Depends(get_session_manager),
) -> SendMessageResponse:
    """Send a prompt and wait for the turn to finish.

    The response text is rendered into the session's sink buffer; read it
    back from ``GET /buffers/{handle}``.
    """
    prompt = request.prompt.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")

    try:
        state = await manager.send_message(session_id, prompt)
    except ChatSessionError as e:
        raise _to_http_error(e) from e

    return SendMessageResponse(session_id=session_id, state=state.value)


@router.put("/sessions/{session_id}/model")
async def switch_model(
    session_id: str,
    request: SwitchModelRequest,
    manager: ChatSessionManager = Depends(get_session_manager),
) -> SessionInfo:
    """Change the model used for the session's next turns."""
    try:
        await manager.switch_model(session_id, request.model)
    except ChatSessionError as e:
        raise _to_http_error(e) from e

    info = manager.get_session_info(session_id)
    if info is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return info


# Admin endpoint for monitoring
@router.get("/chat/stats")
async def get_chat_stats(
    manager: ChatSessionManager = Depends(get_session_manager),
) -> dict[str, Any]:
    """Get chat session statistics (admin endpoint)."""
    return manager.get_stats()
