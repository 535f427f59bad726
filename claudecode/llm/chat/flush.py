"""Line batching between a stream of text deltas and a sink.

Assistant text arrives in many small fragments. Writing each one to the sink
would flood it with tiny writes, so lines are collected in a FlushBuffer and
delivered as one batch once ``FLUSH_INTERVAL`` has elapsed since the last
delivery, or immediately when forced at a turn boundary.
"""

import logging
import time
from collections.abc import Callable, Hashable, Iterable

from claudecode.sinks.base import Sink

logger = logging.getLogger(__name__)

FLUSH_INTERVAL = 0.1  # seconds


def split_lines(text: str) -> list[str]:
    """Split a text fragment into sink lines.

    Internal blank lines are kept. Only the empty tail produced by a trailing
    line break is dropped, so ``"x\\ny\\n"`` and ``"x\\ny"`` both give
    ``["x", "y"]``.

    Args:
        text: A text fragment from the generation service.

    Returns:
        The lines to offer to the buffer.
    """
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


class FlushBuffer:
    """Pending lines for one turn, flushed to the sink in batches."""

    def __init__(
        self,
        sink: Sink,
        handle: Hashable,
        interval: float = FLUSH_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the buffer.

        Args:
            sink: Destination of flushed batches.
            handle: Sink buffer the lines belong to.
            interval: Minimum seconds between two non-forced flushes.
            clock: Monotonic time source, replaceable in tests.
        """
        self._sink = sink
        self._handle = handle
        self._interval = interval
        self._clock = clock
        self._pending: list[str] = []
        self.last_flush_time = clock()
        self.flush_count = 0

    @property
    def pending(self) -> list[str]:
        """Copy of the lines not yet delivered."""
        return list(self._pending)

    def offer(self, lines: Iterable[str]) -> None:
        """Queue lines for the next flush."""
        self._pending.extend(lines)

    async def maybe_flush(self, force: bool = False) -> bool:
        """Deliver all pending lines as one batch if the flush is due.

        A flush is due when there is something pending and either ``force``
        is set or ``interval`` seconds have passed since the last delivery.

        Args:
            force: Flush regardless of elapsed time.

        Returns:
            True if a batch was written to the sink.
        """
        if not self._pending:
            return False

        now = self._clock()
        if not force and now - self.last_flush_time < self._interval:
            return False

        batch = list(self._pending)
        # Lines stay pending if the sink raises
        await self._sink.append_lines(self._handle, batch)
        del self._pending[: len(batch)]
        self.last_flush_time = now
        self.flush_count += 1
        logger.debug(f"Flushed {len(batch)} line(s) to {self._handle!r}")
        return True
