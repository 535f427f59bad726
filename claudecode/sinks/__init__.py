"""Display sinks that session output is rendered into."""

from claudecode.sinks.base import Sink, SinkError
from claudecode.sinks.console import ConsoleSink
from claudecode.sinks.memory import MemorySink, SinkOperation

__all__ = [
    "ConsoleSink",
    "MemorySink",
    "Sink",
    "SinkError",
    "SinkOperation",
]
