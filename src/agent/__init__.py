"""Agent entrypoints for the MCP chat host."""

from __future__ import annotations

from .chat import ChatAgent

__all__ = [
    "ChatAgent",
]
