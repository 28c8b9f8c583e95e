"""
Interactive entry point.

Loads settings, connects to the configured MCP server, runs the read-eval-print
loop and, whatever happens, saves the transcript and closes the server.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
import threading
from typing import Any, Callable, Dict, Optional

from app_config import ConfigError, Settings, load_settings
from chat.completions import CompletionGateway
from chat.conversation import Conversation
from chat.errors import AgentError, ServerConnectionError
from chat.history import save_transcript
from chat.mcp_bridge import ToolSession

from . import console
from .chat import ChatAgent

logger = logging.getLogger(__name__)

QUIT_COMMAND = "quit"

LineReader = Callable[[str], str]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _init_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("mcp").setLevel(logging.WARNING)


def _announce_tool_call(name: str, args: Dict[str, Any]) -> None:
    console.clear_line()
    console.host(f"Calling tool {name} with args {args}")
    console.thinking()


def read_query(reader: LineReader, prompt: str) -> str:
    """
    Read one line with Python's own SIGINT handler in place.

    ``asyncio.run`` swaps in a handler that only cancels the main task, which
    leaves a blocking ``input()`` waiting; the default handler raises
    KeyboardInterrupt inside the read so Ctrl+C ends the prompt at once.
    """
    if threading.current_thread() is not threading.main_thread():
        return reader(prompt)

    previous = signal.getsignal(signal.SIGINT)
    signal.signal(signal.SIGINT, signal.default_int_handler)
    try:
        return reader(prompt)
    finally:
        signal.signal(signal.SIGINT, previous)


async def save_and_close(
    conversation: Conversation,
    tool_session: ToolSession,
    history_dir: Any,
) -> None:
    """Best-effort shutdown: persist the transcript, then close the server."""
    try:
        path = save_transcript(conversation.to_messages(), history_dir)
        logger.info("Saved transcript to %s", path)
    except OSError as exc:
        logger.error("Could not save transcript: %s", exc)
    try:
        await tool_session.close()
    except Exception:  # pylint: disable=broad-except
        logger.exception("Error while closing MCP session")


# ---------------------------------------------------------------------------
# Loop
# ---------------------------------------------------------------------------
async def chat_loop(agent: ChatAgent, *, read_line: Optional[LineReader] = None) -> None:
    """Read queries until ``quit``; a failed turn never ends the loop."""
    reader = read_line or input
    console.host("MCP Client Started!")
    console.host(f"Type your queries or '{QUIT_COMMAND}' to exit.")

    while True:
        try:
            query = read_query(reader, console.user_prompt()).strip()
        except (EOFError, KeyboardInterrupt):
            console.host("Bye!")
            return

        if not query:
            continue
        if query.lower() == QUIT_COMMAND:
            console.host("Bye!")
            return

        console.thinking()
        try:
            answer = await agent.respond(query)
        except AgentError as exc:
            console.clear_line()
            logger.error("Error: %s", exc)
            console.error(str(exc))
            continue
        except Exception as exc:  # pylint: disable=broad-except
            console.clear_line()
            logger.exception("Unexpected error during turn")
            console.error(str(exc))
            continue

        console.clear_line()
        console.assistant(answer)


async def run(
    settings: Settings,
    *,
    read_line: Optional[LineReader] = None,
    tool_session: Optional[ToolSession] = None,
    gateway: Optional[CompletionGateway] = None,
) -> Conversation:
    """Connect, chat until the user quits, then save and close exactly once."""
    server = settings.server
    console.host(f"Connecting to server <{server.name}>...")
    if tool_session is None:
        tool_session = await ToolSession.connect(
            server.command,
            server.args,
            name=server.name,
            timeout=settings.tool_timeout,
        )

    conversation = Conversation()
    try:
        tools = await tool_session.list_tools()
        names = ", ".join(console.colored(tool.name, console.AnsiColors.GREEN) for tool in tools)
        console.host(f"Connected with tools: {names}")

        agent = ChatAgent(
            gateway=gateway or CompletionGateway.from_settings(settings),
            tool_session=tool_session,
            conversation=conversation,
            on_tool_call=_announce_tool_call,
        )
        await chat_loop(agent, read_line=read_line)
    finally:
        await save_and_close(conversation, tool_session, settings.history_dir)
    return conversation


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main() -> None:
    try:
        settings = load_settings()
    except ConfigError as exc:
        _init_logging("WARNING")
        logger.error("%s", exc)
        sys.exit(1)

    _init_logging(settings.log_level)
    try:
        asyncio.run(run(settings))
    except ServerConnectionError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        console.host("Bye!")


if __name__ == "__main__":
    main()
