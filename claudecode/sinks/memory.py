"""In-memory sink that keeps one transcript per handle."""

import logging
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Literal

from claudecode.sinks.base import Sink

logger = logging.getLogger(__name__)


@dataclass
class SinkOperation:
    """One primitive call recorded by ``MemorySink``."""

    kind: Literal["append", "overwrite"]
    handle: Hashable
    lines: list[str] = field(default_factory=list)


class MemorySink(Sink):
    """Sink backed by Python lists.

    Keeps the rendered lines for each handle, plus an ordered log of every
    primitive call so callers can inspect batching.
    """

    def __init__(self) -> None:
        self._buffers: dict[Hashable, list[str]] = {}
        self.operations: list[SinkOperation] = []

    async def append_lines(self, handle: Hashable, lines: list[str]) -> None:
        self._buffers.setdefault(handle, []).extend(lines)
        self.operations.append(SinkOperation("append", handle, list(lines)))

    async def overwrite_last_line(self, handle: Hashable, line: str) -> None:
        buffer = self._buffers.setdefault(handle, [])
        if buffer:
            buffer[-1] = line
        else:
            # An empty buffer still has one (blank) line to replace
            buffer.append(line)
        self.operations.append(SinkOperation("overwrite", handle, [line]))

    def get_lines(self, handle: Hashable) -> list[str]:
        """Return a copy of the lines written to handle."""
        return list(self._buffers.get(handle, []))

    def operations_for(self, handle: Hashable) -> list[SinkOperation]:
        """Return the recorded operations for one handle."""
        return [op for op in self.operations if op.handle == handle]

    def has_buffer(self, handle: Hashable) -> bool:
        return handle in self._buffers

    def clear(self, handle: Hashable) -> None:
        """Drop the transcript of one handle."""
        self._buffers.pop(handle, None)
        self.operations = [op for op in self.operations if op.handle != handle]
        logger.debug(f"Cleared memory buffer {handle!r}")
