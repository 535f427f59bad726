"""Tests for sink implementations."""

import io

import pytest

from claudecode.sinks import ConsoleSink, MemorySink, Sink, SinkError
from claudecode.sinks.console import CURSOR_UP_CLEAR


class TestSinkInterface:
    """Tests for the abstract Sink."""

    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            Sink()

    def test_incomplete_subclass(self):
        class AppendOnly(Sink):
            async def append_lines(self, handle, lines):
                pass

        with pytest.raises(TypeError):
            AppendOnly()


class TestMemorySink:
    """Tests for MemorySink."""

    @pytest.mark.asyncio
    async def test_append_and_overwrite(self):
        sink = MemorySink()

        await sink.append_lines("buf", ["", "Claude is thinking..."])
        await sink.overwrite_last_line("buf", "Claude:")
        await sink.append_lines("buf", ["Hello!"])

        assert sink.get_lines("buf") == ["", "Claude:", "Hello!"]
        assert [op.kind for op in sink.operations] == ["append", "overwrite", "append"]

    @pytest.mark.asyncio
    async def test_overwrite_empty_buffer(self):
        sink = MemorySink()

        await sink.overwrite_last_line("buf", "first")

        assert sink.get_lines("buf") == ["first"]

    @pytest.mark.asyncio
    async def test_handles_are_independent(self):
        sink = MemorySink()

        await sink.append_lines(1, ["a"])
        await sink.append_lines(2, ["b"])

        assert sink.get_lines(1) == ["a"]
        assert sink.get_lines(2) == ["b"]
        assert [op.lines for op in sink.operations_for(2)] == [["b"]]

    @pytest.mark.asyncio
    async def test_recorded_lines_are_copies(self):
        sink = MemorySink()
        lines = ["a"]

        await sink.append_lines("buf", lines)
        lines.append("b")

        assert sink.operations[0].lines == ["a"]
        assert sink.get_lines("buf") == ["a"]

    @pytest.mark.asyncio
    async def test_clear(self):
        sink = MemorySink()
        await sink.append_lines("buf", ["a"])
        await sink.append_lines("other", ["b"])

        sink.clear("buf")

        assert not sink.has_buffer("buf")
        assert sink.has_buffer("other")
        assert sink.operations_for("buf") == []

    def test_unknown_handle(self):
        sink = MemorySink()

        assert sink.get_lines("missing") == []
        assert sink.has_buffer("missing") is False


class TestConsoleSink:
    """Tests for ConsoleSink."""

    @pytest.mark.asyncio
    async def test_prints_lines(self):
        stream = io.StringIO()
        sink = ConsoleSink(stream)

        await sink.append_lines("buf", ["a", "b"])

        assert stream.getvalue() == "a\nb\n"
        assert sink.get_lines("buf") == ["a", "b"]

    @pytest.mark.asyncio
    async def test_overwrite_rewrites_previous_line(self):
        stream = io.StringIO()
        sink = ConsoleSink(stream)

        await sink.append_lines("buf", ["Claude is thinking..."])
        await sink.overwrite_last_line("buf", "Claude:")

        assert stream.getvalue() == f"Claude is thinking...\n{CURSOR_UP_CLEAR}Claude:\n"
        assert sink.get_lines("buf") == ["Claude:"]

    @pytest.mark.asyncio
    async def test_overwrite_after_other_handle_prints_fresh_line(self):
        """Interleaved output from another buffer is never erased."""
        stream = io.StringIO()
        sink = ConsoleSink(stream)

        await sink.append_lines("one", ["thinking"])
        await sink.append_lines("two", ["other"])
        await sink.overwrite_last_line("one", "Claude:")

        assert CURSOR_UP_CLEAR not in stream.getvalue()
        assert stream.getvalue().endswith("other\nClaude:\n")
        assert sink.get_lines("one") == ["Claude:"]

    @pytest.mark.asyncio
    async def test_closed_stream_raises_sink_error(self):
        stream = io.StringIO()
        sink = ConsoleSink(stream)
        stream.close()

        with pytest.raises(SinkError) as exc_info:
            await sink.append_lines("buf", ["a"])

        assert exc_info.value.handle == "buf"
