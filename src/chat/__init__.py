"""Transcript, LLM gateway and MCP bridge used by the chat agent."""

from __future__ import annotations

from .completions import CompletionGateway, CompletionResult
from .conversation import Conversation, Message, ToolCall
from .errors import (
    AgentError,
    GatewayError,
    ServerConnectionError,
    ToolInvocationError,
    TurnError,
)
from .mcp_bridge import ToolDescriptor, ToolResult, ToolSession

__all__ = [
    "AgentError",
    "CompletionGateway",
    "CompletionResult",
    "Conversation",
    "GatewayError",
    "Message",
    "ServerConnectionError",
    "ToolCall",
    "ToolDescriptor",
    "ToolInvocationError",
    "ToolResult",
    "ToolSession",
    "TurnError",
]
