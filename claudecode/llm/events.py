"""Stream events produced by the generation service for one turn."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class TokenUsage(BaseModel):
    """Token accounting reported by the generation service."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None


class ContentBlock(BaseModel):
    """One block of an assistant message. Only ``text`` blocks are rendered."""

    type: str
    text: str | None = None

    class Config:
        extra = "allow"  # Tool use blocks carry arbitrary fields


class AssistantMessageBody(BaseModel):
    """A completed assistant message, as stored in session history."""

    id: str | None = None
    role: Literal["assistant"] = "assistant"
    model: str | None = None
    content: list[ContentBlock] = Field(default_factory=list)
    stop_reason: str | None = None
    usage: TokenUsage | None = None


class SystemEvent(BaseModel):
    """Service bookkeeping emitted before the assistant starts answering."""

    kind: Literal["system"] = "system"
    subtype: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class AssistantEvent(BaseModel):
    """A chunk of assistant output."""

    kind: Literal["assistant"] = "assistant"
    message: AssistantMessageBody | None = None


class ResultEvent(BaseModel):
    """Final event of a turn, carrying usage totals."""

    kind: Literal["result"] = "result"
    usage: TokenUsage | None = None
    subtype: str | None = None
    is_error: bool = False
    num_turns: int | None = None
    total_cost_usd: float | None = None
    result: str | None = None


StreamEvent = Annotated[
    SystemEvent | AssistantEvent | ResultEvent,
    Field(discriminator="kind"),
]

