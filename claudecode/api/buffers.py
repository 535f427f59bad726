"""Read access to rendered sink buffers."""

from fastapi import APIRouter, Depends, HTTPException

from claudecode.api.sessions import get_session_manager
from claudecode.llm.chat.manager import ChatSessionManager
from claudecode.sinks.memory import MemorySink

router = APIRouter()


@router.get("/buffers/{handle}")
async def get_buffer(
    handle: str,
    manager: ChatSessionManager = Depends(get_session_manager),
) -> dict[str, object]:
    """Return the lines rendered into a buffer.

    Only available when the application renders into a MemorySink.
    """
    sink = manager.sink
    if not isinstance(sink, MemorySink):
        raise HTTPException(status_code=501, detail="Sink does not keep transcripts")

    if not sink.has_buffer(handle):
        raise HTTPException(status_code=404, detail="Buffer not found")

    return {"handle": handle, "lines": sink.get_lines(handle)}
