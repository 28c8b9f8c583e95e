"""Small stand-ins for the LLM gateway and the MCP session used across tests."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Union

from chat.completions import CompletionResult
from chat.conversation import Message, ToolCall
from chat.errors import ToolInvocationError
from chat.mcp_bridge import ToolDescriptor, ToolResult


class ScriptedGateway:
    """Returns queued completion results and records what it was sent."""

    def __init__(self, *results: Union[CompletionResult, Exception]) -> None:
        self.results = list(results)
        self.calls: List[Dict[str, Any]] = []

    async def complete(
        self,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolDescriptor]] = None,
        *,
        model: Optional[str] = None,
    ) -> CompletionResult:
        self.calls.append({"messages": tuple(messages), "tools": tools})
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeToolSession:
    def __init__(self, tools: Sequence[str] = ("list_dir",), outputs: Optional[Dict[str, Any]] = None) -> None:
        self.tools = [ToolDescriptor(name=name, description=f"{name} tool") for name in tools]
        self.outputs = outputs or {}
        self.calls: List[tuple] = []
        self.list_calls = 0
        self.close_calls = 0

    async def list_tools(self) -> List[ToolDescriptor]:
        self.list_calls += 1
        return list(self.tools)

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        self.calls.append((name, arguments))
        output = self.outputs.get(name, f"{name} ok")
        if isinstance(output, Exception):
            raise ToolInvocationError(name, str(output), cause=output)
        return ToolResult(name=name, text=output)

    async def close(self) -> None:
        self.close_calls += 1


def text(answer: str) -> CompletionResult:
    return CompletionResult(text=answer, finish_reason="stop")


def tool_calls(*calls: ToolCall) -> CompletionResult:
    return CompletionResult(text=None, tool_calls=tuple(calls), finish_reason="tool_calls")
