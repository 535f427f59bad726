"""Pytest configuration and fixtures."""

import asyncio
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from datetime import datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from claudecode.config import Settings
from claudecode.llm.chat.manager import ChatSessionManager
from claudecode.llm.chat.store import SessionStore
from claudecode.llm.events import (
    AssistantEvent,
    AssistantMessageBody,
    ContentBlock,
    ResultEvent,
    StreamEvent,
    SystemEvent,
    TokenUsage,
)
from claudecode.llm.service import DEFAULT_MAX_TURNS, GenerationService
from claudecode.main import create_app
from claudecode.sinks.memory import MemorySink


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeMonotonic:
    """Monotonic clock in seconds that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class ScriptedService(GenerationService):
    """Generation service that replays a fixed list of events.

    Optionally raises ``error`` after the events, and can pause after a
    number of events until ``resume`` is set, so tests can act mid-turn.
    """

    def __init__(
        self,
        events: list[StreamEvent] | None = None,
        error: Exception | None = None,
        pause_after: int | None = None,
    ):
        self.events = list(events or [])
        self.error = error
        self.pause_after = pause_after
        self.paused = asyncio.Event()
        self.resume = asyncio.Event()
        self.calls: list[dict] = []
        self.cancel_events: list[asyncio.Event | None] = []
        self.closed = False

    async def stream(
        self,
        prompt: str,
        *,
        model: str,
        max_turns: int = DEFAULT_MAX_TURNS,
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[StreamEvent]:
        self.calls.append({"prompt": prompt, "model": model, "max_turns": max_turns})
        self.cancel_events.append(cancel)
        try:
            for index, event in enumerate(self.events):
                if self.pause_after is not None and index == self.pause_after:
                    self.paused.set()
                    await self.resume.wait()
                if cancel is not None and cancel.is_set():
                    return
                yield event
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True


def make_assistant(*texts: str, model: str = "sonnet") -> AssistantEvent:
    """Build an assistant event with one text block per fragment."""
    return AssistantEvent(
        message=AssistantMessageBody(
            model=model,
            content=[ContentBlock(type="text", text=text) for text in texts],
        )
    )


def make_result(input_tokens: int | None = None, output_tokens: int = 0) -> ResultEvent:
    """Build a result event, with usage if input_tokens is given."""
    usage = None
    if input_tokens is not None:
        usage = TokenUsage(input_tokens=input_tokens, output_tokens=output_tokens)
    return ResultEvent(usage=usage, subtype="success")


def make_system(subtype: str = "init") -> SystemEvent:
    return SystemEvent(subtype=subtype, data={"session_id": "sdk-session"})


@pytest.fixture
def scripted_service() -> type[ScriptedService]:
    return ScriptedService


@pytest.fixture
def assistant_event() -> Callable[..., AssistantEvent]:
    return make_assistant


@pytest.fixture
def result_event() -> Callable[..., ResultEvent]:
    return make_result


@pytest.fixture
def system_event() -> Callable[..., SystemEvent]:
    return make_system


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def service() -> ScriptedService:
    """Service answering "Hello!" with usage 15 input / 8 output."""
    return ScriptedService([make_assistant("Hello!"), make_result(15, 8)])


@pytest.fixture
def settings() -> Settings:
    return Settings(max_sessions=3, session_timeout_minutes=30)


@pytest.fixture
def store(settings: Settings, clock: FakeClock) -> SessionStore:
    return SessionStore(
        max_sessions=settings.max_sessions,
        session_timeout=settings.session_timeout,
        clock=clock,
    )


@pytest.fixture
def manager(
    service: ScriptedService,
    sink: MemorySink,
    settings: Settings,
    store: SessionStore,
    monotonic: FakeMonotonic,
) -> ChatSessionManager:
    return ChatSessionManager(
        service=service,
        sink=sink,
        settings=settings,
        store=store,
        flush_clock=monotonic,
    )


@pytest.fixture
async def client(
    service: ScriptedService,
    sink: MemorySink,
    settings: Settings,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client around a scripted service."""
    app = create_app(service=service, sink=sink, settings=settings)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
