"""Error types raised while talking to the LLM and the MCP server."""

from __future__ import annotations

from typing import Optional


class AgentError(Exception):
    """Base class for failures the chat loop reports and survives."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ServerConnectionError(AgentError, ConnectionError):
    """Raised when the MCP server cannot be spawned or the handshake fails."""


class GatewayError(AgentError):
    """Raised when the chat completion request fails or returns no choices."""


class ToolInvocationError(AgentError):
    """Raised when the MCP server rejects or fails a tool call."""

    def __init__(self, tool_name: str, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Tool '{tool_name}' failed: {message}", cause=cause)
        self.tool_name = tool_name


class TurnError(AgentError):
    """Wraps an unexpected exception raised while running one turn."""


__all__ = [
    "AgentError",
    "ServerConnectionError",
    "GatewayError",
    "ToolInvocationError",
    "TurnError",
]
