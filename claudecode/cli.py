#!/usr/bin/env python3
"""Interactive terminal client for concurrent Claude chat sessions.

Usage:
    python -m claudecode.cli [--model sonnet] [--max-turns 3] [--debug]

Commands:
    /new [model]     Start a session and make it current
    /use <id>        Make another session current
    /model <name>    Switch the model of the current session
    /end [id]        End a session (the current one by default)
    /list            List sessions
    /quit            Exit

Anything else is sent as a prompt to the current session. A session is
created on first use if none is current.
"""

import argparse
import asyncio
import logging
import sys

from claudecode.config import Settings, load_settings
from claudecode.llm.chat import ChatSessionError, ChatSessionManager, sanitize_error_message
from claudecode.llm.service import ClaudeGenerationService, GenerationService
from claudecode.sinks.base import SinkError
from claudecode.sinks.console import ConsoleSink

PROMPT = "> "


# ANSI color codes
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"


def colorize(text: str, color: str) -> str:
    """Apply ANSI color to text."""
    return f"{color}{text}{Colors.RESET}"


def out(text: str = "") -> None:
    """Print with immediate flush for non-TTY environments."""
    print(text, flush=True)


class ChatRepl:
    """Line-oriented front end over a ChatSessionManager.

    Every session renders into its own console buffer, named after the
    order in which it was opened.
    """

    def __init__(self, manager: ChatSessionManager, default_model: str):
        self.manager = manager
        self.default_model = default_model
        self._buffer_count = 0

    def _next_handle(self) -> str:
        self._buffer_count += 1
        return f"buffer-{self._buffer_count}"

    def new_session(self, model: str | None = None) -> str:
        session_id = self.manager.create_session(
            self._next_handle(), model or self.default_model
        )
        info = self.manager.get_session_info(session_id)
        out(colorize(f"Started session {session_id} ({info.model})", Colors.GREEN))
        return session_id

    def list_sessions(self) -> None:
        sessions = self.manager.get_all_sessions()
        if not sessions:
            out(colorize("No sessions", Colors.DIM))
            return

        current = self.manager.get_current_session()
        for session_id, info in sorted(sessions.items(), key=lambda kv: kv[1].created_at):
            marker = "*" if session_id == current else " "
            busy = " (busy)" if info.is_processing else ""
            out(
                f"{marker} {session_id}  {info.model}  {info.sink_handle}  "
                f"{info.message_count} messages{busy}"
            )

    async def send(self, prompt: str) -> None:
        session_id = self.manager.get_current_session() or self.new_session()
        await self.manager.send_message(session_id, prompt)

    async def handle_line(self, line: str) -> bool:
        """Run one line of input.

        Returns:
            False when the client should exit.
        """
        line = line.strip()
        if not line:
            return True

        if not line.startswith("/"):
            await self.send(line)
            return True

        command, _, arg = line.partition(" ")
        arg = arg.strip()

        if command in ("/quit", "/exit"):
            return False
        if command == "/new":
            self.new_session(arg or None)
        elif command == "/use":
            if not arg:
                out(colorize("Usage: /use <session id>", Colors.YELLOW))
            else:
                self.manager.set_current_session(arg)
                out(colorize(f"Current session: {arg}", Colors.DIM))
        elif command == "/model":
            current = self.manager.get_current_session()
            if not arg:
                out(colorize("Usage: /model <name>", Colors.YELLOW))
            elif current is None:
                out(colorize("No current session", Colors.YELLOW))
            else:
                await self.manager.switch_model(current, arg)
        elif command == "/end":
            session_id = arg or self.manager.get_current_session()
            if session_id and self.manager.end_session(session_id):
                out(colorize(f"Ended session {session_id}", Colors.DIM))
            else:
                out(colorize("No such session", Colors.YELLOW))
        elif command == "/list":
            self.list_sessions()
        else:
            out(colorize(f"Unknown command: {command}", Colors.YELLOW))
        return True


async def run_repl(
    service: GenerationService,
    settings: Settings,
) -> None:
    manager = ChatSessionManager(service=service, sink=ConsoleSink(), settings=settings)
    repl = ChatRepl(manager, settings.default_model)

    try:
        while True:
            try:
                line = await asyncio.to_thread(input, colorize(PROMPT, Colors.CYAN))
            except EOFError:
                break

            try:
                if not await repl.handle_line(line):
                    break
            except (ChatSessionError, SinkError) as e:
                out(colorize(f"Error: {sanitize_error_message(e)}", Colors.RED))
    finally:
        await manager.shutdown()


async def main():
    parser = argparse.ArgumentParser(
        description="Chat with Claude in several concurrent sessions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--model", "-m",
        default=None,
        help="Default model for new sessions (default: from CLAUDECODE_DEFAULT_MODEL or sonnet)",
    )
    parser.add_argument(
        "--max-turns",
        type=int,
        default=None,
        help="Maximum agent turns per prompt (default: 3)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    settings = load_settings()
    updates = {}
    if args.model:
        updates["default_model"] = args.model
    if args.max_turns is not None:
        updates["max_turns"] = args.max_turns
    settings = settings.model_copy(update=updates)

    out(colorize("=== Claude Sessions ===", Colors.BOLD))
    out(colorize(f"Model: {settings.default_model}, max turns: {settings.max_turns}", Colors.DIM))
    out(colorize("Type /quit to exit", Colors.DIM))
    out()

    try:
        await run_repl(ClaudeGenerationService(), settings)
    except KeyboardInterrupt:
        out(colorize("\nCancelled by user", Colors.YELLOW))
        sys.exit(130)


if __name__ == "__main__":
    asyncio.run(main())
