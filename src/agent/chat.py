"""Chat agent that answers one user turn, using MCP tools when the model asks."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from chat.completions import CompletionGateway
from chat.conversation import Conversation, ToolCall
from chat.errors import AgentError, TurnError
from chat.mcp_bridge import ToolSession

logger = logging.getLogger(__name__)

ToolCallListener = Callable[[str, Dict[str, Any]], None]


class ChatAgent:
    """Drives the gateway and the tool session through a single turn.

    A turn is at most one round of tool use: the model sees the tools once,
    every requested call runs in order, and a tool-free completion produces
    the final answer.
    """

    def __init__(
        self,
        *,
        gateway: CompletionGateway,
        tool_session: ToolSession,
        conversation: Optional[Conversation] = None,
        on_tool_call: Optional[ToolCallListener] = None,
    ) -> None:
        self.gateway = gateway
        self.tool_session = tool_session
        self.conversation = conversation if conversation is not None else Conversation()
        self.on_tool_call = on_tool_call

    async def respond(self, user_message: str) -> str:
        """Take one user turn and return the assistant's final answer."""
        try:
            return await self._run_turn(user_message)
        except AgentError:
            raise
        except Exception as exc:
            raise TurnError(f"Turn failed: {exc}", cause=exc) from exc

    async def _run_turn(self, user_message: str) -> str:
        self.conversation.append_user(user_message)

        tools = await self.tool_session.list_tools()
        result = await self.gateway.complete(self.conversation.snapshot(), tools)

        if not result.requests_tools:
            text = result.text or ""
            self.conversation.append_assistant(text)
            return text

        self.conversation.append_assistant(None, result.tool_calls)
        for call in result.tool_calls:
            await self._execute(call)

        final = await self.gateway.complete(self.conversation.snapshot())
        text = final.text or ""
        self.conversation.append_assistant(text)
        return text

    async def _execute(self, call: ToolCall) -> None:
        args = call.decoded_arguments()
        logger.info("Calling tool %s (%s) with args %s", call.name, call.id, args)
        if self.on_tool_call is not None:
            self.on_tool_call(call.name, args)
        tool_result = await self.tool_session.call_tool(call.name, args)
        self.conversation.append_tool(tool_result.text, call.id)
