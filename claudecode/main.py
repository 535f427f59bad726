"""FastAPI application entry point."""

import logging
import os
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from claudecode import __version__
from claudecode.api import buffers, sessions
from claudecode.config import Settings, load_settings
from claudecode.llm.chat.manager import ChatSessionManager
from claudecode.llm.service import ClaudeGenerationService, GenerationService
from claudecode.sinks.base import Sink
from claudecode.sinks.memory import MemorySink

# Configure logging
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown."""
    manager: ChatSessionManager = app.state.manager

    # Start idle session sweeping
    await manager.start_cleanup_task()

    yield

    # Shutdown chat session manager
    await manager.shutdown()


def create_app(
    service: GenerationService | None = None,
    sink: Sink | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the application around one ChatSessionManager.

    Args:
        service: Generation service (Claude via claude-agent-sdk if not given).
        sink: Display sink (an in-memory sink if not given).
        settings: Limits and defaults (read from the environment if not given).
    """
    settings = settings or load_settings()
    manager = ChatSessionManager(
        service=service or ClaudeGenerationService(),
        sink=sink or MemorySink(),
        settings=settings,
    )

    app = FastAPI(
        title="Claude Code Sessions",
        description="Concurrent Claude chat sessions rendered into display buffers",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.manager = manager

    # CORS middleware - allow any localhost port for local editor frontends
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"^http://localhost(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    app.include_router(sessions.router, prefix="/api/v1", tags=["sessions"])
    app.include_router(buffers.router, prefix="/api/v1", tags=["buffers"])

    logger.info(
        f"Session manager ready (max sessions: {settings.max_sessions}, "
        f"idle timeout: {settings.session_timeout_minutes}m, "
        f"default model: {settings.default_model})"
    )
    return app


app = create_app()
