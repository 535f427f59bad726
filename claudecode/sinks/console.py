"""Console sink used by the interactive CLI."""

import sys
from collections.abc import Hashable
from typing import TextIO

from claudecode.sinks.base import SinkError
from claudecode.sinks.memory import MemorySink

# Move the cursor to the start of the previous line and clear it
CURSOR_UP_CLEAR = "\033[F\033[K"


class ConsoleSink(MemorySink):
    """Echo every write to a text stream while keeping the transcript.

    Overwrites use an ANSI cursor sequence, but only when the line being
    replaced is the last one this sink printed for the same handle.
    Otherwise the replacement is printed as a fresh line.
    """

    def __init__(self, stream: TextIO | None = None):
        super().__init__()
        self._stream = stream or sys.stdout
        self._last_printed: Hashable | None = None

    async def append_lines(self, handle: Hashable, lines: list[str]) -> None:
        await super().append_lines(handle, lines)
        self._write(handle, "".join(f"{line}\n" for line in lines))
        if lines:
            self._last_printed = handle

    async def overwrite_last_line(self, handle: Hashable, line: str) -> None:
        await super().overwrite_last_line(handle, line)
        if self._last_printed == handle:
            self._write(handle, f"{CURSOR_UP_CLEAR}{line}\n")
        else:
            self._write(handle, f"{line}\n")
        self._last_printed = handle

    def _write(self, handle: Hashable, text: str) -> None:
        try:
            self._stream.write(text)
            self._stream.flush()
        except (OSError, ValueError) as e:
            raise SinkError(f"Cannot write to console: {e}", handle=handle) from e
