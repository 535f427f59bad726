"""StreamConsumer renders one turn of a session into its sink.

A turn is a small state machine:

    idle -> sending -> (flushing -> sending)* -> terminated_ok
                                              -> terminated_error

Sink writes for a turn, in order:
- ``["", "Claude is thinking..."]`` as soon as the turn starts
- overwrite of that notice with ``"Claude:"`` on the first assistant event
- batched response lines, through a FlushBuffer
- ``["", "[Tokens used: N input, M output]"]`` when the result carries usage
- ``["", "---", ""]`` when the sequence ends

A failure of the generation service is turned into a ``StreamFailure`` item
instead of an exception and rendered as an ``Error:`` line. The session
stays usable for the next turn.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from enum import Enum

from claudecode.llm.chat.flush import FLUSH_INTERVAL, FlushBuffer, split_lines
from claudecode.llm.chat.sanitize import sanitize_error_message
from claudecode.llm.chat.session import ChatSession
from claudecode.llm.events import AssistantEvent, ResultEvent, StreamEvent
from claudecode.llm.service import DEFAULT_MAX_TURNS, GenerationService
from claudecode.sinks.base import Sink

logger = logging.getLogger(__name__)

THINKING_NOTICE = "Claude is thinking..."
RESPONSE_HEADER = "Claude:"
TURN_SEPARATOR = ["", "---", ""]


class TurnState(str, Enum):
    """State of a turn."""

    IDLE = "idle"
    SENDING = "sending"
    FLUSHING = "flushing"
    TERMINATED_OK = "terminated_ok"
    TERMINATED_ERROR = "terminated_error"


@dataclass
class StreamFailure:
    """The generation service failed instead of producing the next event."""

    reason: str
    error: BaseException | None = None


StreamItem = StreamEvent | StreamFailure


def format_usage(input_tokens: int, output_tokens: int) -> str:
    return f"[Tokens used: {input_tokens} input, {output_tokens} output]"


class StreamConsumer:
    """Drives one turn of one session from the service to the sink.

    The consumer owns the turn's FlushBuffer and is the only writer of the
    session's history while the turn runs. Before every sink write it checks
    that the session is still active; once the session has been ended it
    stops writing, signals the service to stop and closes the stream.
    """

    def __init__(
        self,
        session: ChatSession,
        service: GenerationService,
        sink: Sink,
        max_turns: int = DEFAULT_MAX_TURNS,
        flush_interval: float = FLUSH_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._session = session
        self._service = service
        self._sink = sink
        self._handle = session.sink_handle
        self._max_turns = max_turns
        self._buffer = FlushBuffer(sink, self._handle, interval=flush_interval, clock=clock)
        self._cancel = asyncio.Event()
        self._started = False
        self.state = TurnState.IDLE
        self.cancelled = False
        self.failure: StreamFailure | None = None

    @property
    def buffer(self) -> FlushBuffer:
        return self._buffer

    async def run(self, prompt: str) -> TurnState:
        """Run the turn to completion.

        Args:
            prompt: The user prompt.

        Returns:
            The terminal state of the turn.

        Raises:
            Exception: Whatever the sink raises. Service failures never
                propagate.
        """
        if self.state is not TurnState.IDLE:
            raise RuntimeError(f"Turn already started (state: {self.state.value})")

        self._set_state(TurnState.SENDING)
        try:
            return await self._run(prompt)
        except Exception as e:
            self._set_state(TurnState.TERMINATED_ERROR)
            logger.error(
                f"Turn failed for session {self._session.session_id}: "
                f"{sanitize_error_message(e)}"
            )
            raise

    async def _run(self, prompt: str) -> TurnState:
        if not await self._append(["", THINKING_NOTICE]):
            return self._set_state(TurnState.TERMINATED_OK)

        items = self._pull_events(prompt)
        try:
            async for item in items:
                if isinstance(item, StreamFailure):
                    await self._fail(item)
                    return self._set_state(TurnState.TERMINATED_ERROR)

                if not self._writable():
                    break

                if isinstance(item, AssistantEvent):
                    await self._on_assistant(item)
                elif isinstance(item, ResultEvent):
                    await self._on_result(item)
                    break
                else:
                    logger.debug(f"Ignoring {item.kind} event ({item.subtype})")

                if self.cancelled:
                    break
        finally:
            await items.aclose()

        if not self.cancelled:
            await self._flush(force=True)
            await self._append(TURN_SEPARATOR)

        return self._set_state(TurnState.TERMINATED_OK)

    async def _pull_events(self, prompt: str) -> AsyncIterator[StreamItem]:
        """Iterate over the service's events, turning a failure into an item."""
        events = None
        try:
            events = self._service.stream(
                prompt,
                model=self._session.model,
                max_turns=self._max_turns,
                cancel=self._cancel,
            )
            async for event in events:
                yield event
        except Exception as e:
            yield StreamFailure(reason=str(e), error=e)
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()

    async def _on_assistant(self, event: AssistantEvent) -> None:
        if not self._started:
            if not await self._overwrite(RESPONSE_HEADER):
                return
            self._started = True

        message = event.message
        if message is None:
            return

        for block in message.content:
            if block.type != "text" or block.text is None:
                continue
            if not self._writable():
                return
            self._buffer.offer(split_lines(block.text))
            await self._flush(force=False)

        if self._writable():
            self._session.record_message(message)

    async def _on_result(self, event: ResultEvent) -> None:
        await self._flush(force=True)
        if event.usage is not None:
            await self._append([
                "",
                format_usage(event.usage.input_tokens, event.usage.output_tokens),
            ])

    async def _fail(self, failure: StreamFailure) -> None:
        self.failure = failure
        message = sanitize_error_message(failure.reason)
        logger.error(f"Stream failed for session {self._session.session_id}: {message}")

        if await self._overwrite(""):
            await self._flush(force=True)
            await self._append([f"Error: {message}", ""])

    # --- Guarded sink writes ---

    def _writable(self) -> bool:
        """Whether the session may still receive output from this turn."""
        if self._session.active:
            return True
        if not self.cancelled:
            self.cancelled = True
            self._cancel.set()
            logger.info(
                f"Session {self._session.session_id} ended mid-turn, "
                "suppressing remaining output"
            )
        return False

    async def _append(self, lines: list[str]) -> bool:
        if not self._writable():
            return False
        await self._sink.append_lines(self._handle, lines)
        return True

    async def _overwrite(self, line: str) -> bool:
        if not self._writable():
            return False
        await self._sink.overwrite_last_line(self._handle, line)
        return True

    async def _flush(self, force: bool) -> bool:
        if not self._writable():
            return False
        if not self._buffer.pending:
            return False

        previous = self.state
        self._set_state(TurnState.FLUSHING)
        try:
            return await self._buffer.maybe_flush(force=force)
        finally:
            self._set_state(previous)

    def _set_state(self, state: TurnState) -> TurnState:
        if state is not self.state:
            logger.debug(
                f"Turn for session {self._session.session_id}: "
                f"{self.state.value} -> {state.value}"
            )
            self.state = state
        return state
