"""Stdio bridge to a single MCP tool server, built on the fastmcp client."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from fastmcp import Client as FastMCPClient
from fastmcp.client.transports import StdioTransport
from mcp.types import Tool as MCPTool

from .errors import ServerConnectionError, ToolInvocationError

logger = logging.getLogger(__name__)

_EMPTY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {},
    "additionalProperties": False,
}


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str = ""
    input_schema: Optional[Dict[str, Any]] = None

    @classmethod
    def from_mcp(cls, tool: MCPTool) -> "ToolDescriptor":
        return cls(
            name=tool.name,
            description=tool.description or "",
            input_schema=tool.inputSchema,
        )

    def to_openai_tool(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema or dict(_EMPTY_SCHEMA),
            },
        }


@dataclass(frozen=True)
class ToolResult:
    name: str
    text: str
    content: Sequence[Any] = field(default_factory=tuple)


def format_tools_for_openai(tools: Sequence[ToolDescriptor]) -> List[Dict[str, Any]]:
    return [tool.to_openai_tool() for tool in tools]


def _result_texts(result: Any) -> List[str]:
    content = getattr(result, "content", None) or []
    return [
        getattr(chunk, "text", "")
        for chunk in content
        if getattr(chunk, "text", "")
    ]


class ToolSession:
    """Owns the connection to one MCP server process.

    Lifecycle is ``open`` -> (``list_tools`` | ``call_tool``)* -> ``close``.
    ``close`` may be called any number of times.
    """

    def __init__(self, client: Any, *, name: str = "mcp") -> None:
        self.name = name
        self._client = client
        self._stack: Optional[AsyncExitStack] = None
        self._closed = False

    @classmethod
    async def connect(
        cls,
        command: str,
        args: Sequence[str],
        *,
        name: str = "mcp",
        timeout: Optional[float] = None,
    ) -> "ToolSession":
        """Spawn ``command args`` and complete the MCP handshake."""
        try:
            transport = StdioTransport(command=command, args=list(args))
            client = FastMCPClient(transport, timeout=timeout)
        except Exception as exc:
            raise ServerConnectionError(
                f"Could not start MCP server <{name}>: {exc}", cause=exc
            ) from exc
        session = cls(client, name=name)
        await session.open()
        return session

    @property
    def is_open(self) -> bool:
        return self._stack is not None and not self._closed

    async def open(self) -> None:
        if self._closed:
            raise ServerConnectionError(f"MCP session <{self.name}> is already closed")
        if self._stack is not None:
            return
        stack = AsyncExitStack()
        try:
            await stack.enter_async_context(self._client)
        except Exception as exc:
            await stack.aclose()
            raise ServerConnectionError(
                f"Could not connect to MCP server <{self.name}>: {exc}", cause=exc
            ) from exc
        self._stack = stack
        logger.info("Connected to MCP server <%s>", self.name)

    async def list_tools(self) -> List[ToolDescriptor]:
        self._ensure_open()
        try:
            tools = await self._client.list_tools()
        except Exception as exc:
            raise ServerConnectionError(
                f"Could not list tools on MCP server <{self.name}>: {exc}", cause=exc
            ) from exc
        return [ToolDescriptor.from_mcp(tool) for tool in tools]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        self._ensure_open()
        logger.debug("Calling tool %s with %s", name, arguments)
        try:
            result = await self._client.call_tool(name, arguments or {})
        except Exception as exc:
            raise ToolInvocationError(name, str(exc) or type(exc).__name__, cause=exc) from exc

        if getattr(result, "is_error", False):
            raise ToolInvocationError(name, "\n".join(_result_texts(result)) or "tool reported an error")

        texts = _result_texts(result)
        if not texts:
            raise ToolInvocationError(name, "tool returned no text content")
        return ToolResult(name=name, text="\n".join(texts), content=tuple(result.content))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        stack, self._stack = self._stack, None
        if stack is not None:
            await stack.aclose()
            logger.info("Closed MCP server <%s>", self.name)

    async def __aenter__(self) -> "ToolSession":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _ensure_open(self) -> None:
        if not self.is_open:
            raise ServerConnectionError(f"MCP session <{self.name}> is not connected")


__all__ = [
    "ToolDescriptor",
    "ToolResult",
    "ToolSession",
    "format_tools_for_openai",
]
