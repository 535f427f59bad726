"""LLM integration: the generation service and its stream events."""

from claudecode.llm.events import (
    AssistantEvent,
    AssistantMessageBody,
    ContentBlock,
    ResultEvent,
    StreamEvent,
    SystemEvent,
    TokenUsage,
)
from claudecode.llm.service import (
    ClaudeGenerationService,
    GenerationService,
    to_stream_event,
)

__all__ = [
    # Events
    "AssistantEvent",
    "AssistantMessageBody",
    "ContentBlock",
    "ResultEvent",
    "StreamEvent",
    "SystemEvent",
    "TokenUsage",
    # Service
    "ClaudeGenerationService",
    "GenerationService",
    "to_stream_event",
]
