"""Generation service: the source of stream events for one turn."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    ResultMessage,
    SystemMessage,
    TextBlock,
    query,
)

from claudecode.llm.events import (
    AssistantEvent,
    AssistantMessageBody,
    ContentBlock,
    ResultEvent,
    StreamEvent,
    SystemEvent,
    TokenUsage,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 3


class GenerationService(ABC):
    """Produces the event sequence of one conversational turn.

    The sequence is lazy, finite and cannot be restarted. It may raise at any
    point instead of yielding, which ends the sequence.
    """

    @abstractmethod
    def stream(
        self,
        prompt: str,
        *,
        model: str,
        max_turns: int = DEFAULT_MAX_TURNS,
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Start a turn and iterate over its events.

        Args:
            prompt: The user prompt.
            model: Model name to generate with.
            max_turns: Agent turn limit passed through to the service.
            cancel: When set, the service stops yielding events.
        """
        pass


def _to_usage(usage: dict[str, Any] | None) -> TokenUsage | None:
    if not usage:
        return None
    return TokenUsage(
        input_tokens=usage.get("input_tokens", 0),
        output_tokens=usage.get("output_tokens", 0),
        cache_creation_input_tokens=usage.get("cache_creation_input_tokens"),
        cache_read_input_tokens=usage.get("cache_read_input_tokens"),
    )


def to_stream_event(msg: Any) -> StreamEvent | None:
    """Convert a claude_agent_sdk message into a stream event.

    Returns:
        The event, or None for message types the session does not render
        (user echoes of tool results, partial stream events).
    """
    if isinstance(msg, AssistantMessage):
        content: list[ContentBlock] = []
        for block in msg.content:
            if isinstance(block, TextBlock):
                content.append(ContentBlock(type="text", text=block.text))
            else:
                block_type = type(block).__name__.removesuffix("Block").lower()
                content.append(ContentBlock(type=block_type))
        return AssistantEvent(
            message=AssistantMessageBody(model=msg.model, content=content)
        )

    if isinstance(msg, ResultMessage):
        return ResultEvent(
            usage=_to_usage(msg.usage),
            subtype=msg.subtype,
            is_error=msg.is_error,
            num_turns=msg.num_turns,
            total_cost_usd=msg.total_cost_usd,
            result=msg.result,
        )

    if isinstance(msg, SystemMessage):
        return SystemEvent(subtype=msg.subtype, data=dict(msg.data or {}))

    return None


class ClaudeGenerationService(GenerationService):
    """Generation service backed by ``claude_agent_sdk.query``."""

    def __init__(self, options: dict[str, Any] | None = None):
        """Initialize the service.

        Args:
            options: Extra ClaudeAgentOptions fields applied to every turn
                (for example ``cwd`` or ``allowed_tools``).
        """
        self._options = options or {}

    async def stream(
        self,
        prompt: str,
        *,
        model: str,
        max_turns: int = DEFAULT_MAX_TURNS,
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[StreamEvent]:
        options = ClaudeAgentOptions(
            model=model,
            max_turns=max_turns,
            **self._options,
        )

        messages = query(prompt=prompt, options=options)
        try:
            async for msg in messages:
                if cancel is not None and cancel.is_set():
                    logger.info("Generation cancelled, closing stream")
                    break

                event = to_stream_event(msg)
                if event is None:
                    logger.debug(f"Skipping {type(msg).__name__}")
                    continue
                yield event
        finally:
            aclose = getattr(messages, "aclose", None)
            if aclose is not None:
                await aclose()
