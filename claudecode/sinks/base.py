"""Base sink interface for rendering session output.

A sink is the display surface a session writes into (an editor buffer, a
terminal, an in-memory transcript). It exposes exactly two primitives:

1. Append an ordered batch of lines to the end of a buffer
2. Overwrite the last line of a buffer

Both are append-only with respect to what was already written: a sink never
edits arbitrary earlier lines.
"""

from abc import ABC, abstractmethod
from collections.abc import Hashable


class SinkError(Exception):
    """Base exception for sink errors."""

    def __init__(self, message: str, handle: Hashable | None = None):
        super().__init__(message)
        self.handle = handle


class Sink(ABC):
    """Abstract base class for display sinks.

    Example implementation:
        class VimBufferSink(Sink):
            async def append_lines(self, handle, lines):
                await self._rpc.call("appendbufline", handle, "$", lines)

            async def overwrite_last_line(self, handle, line):
                await self._rpc.call("setbufline", handle, "$", line)
    """

    @abstractmethod
    async def append_lines(self, handle: Hashable, lines: list[str]) -> None:
        """Append lines, in order, to the end of the buffer identified by handle.

        Args:
            handle: Opaque buffer reference owned by one session.
            lines: Lines to append, without line terminators.

        Raises:
            SinkError: If the buffer cannot be written.
        """
        pass

    @abstractmethod
    async def overwrite_last_line(self, handle: Hashable, line: str) -> None:
        """Replace the last line of the buffer identified by handle.

        Args:
            handle: Opaque buffer reference owned by one session.
            line: The replacement text.

        Raises:
            SinkError: If the buffer cannot be written.
        """
        pass
