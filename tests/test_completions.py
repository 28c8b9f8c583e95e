"""Completion gateway request shape and error mapping."""

import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest

from agent import ChatAgent
from chat.completions import CompletionGateway
from chat.conversation import Message, ToolCall
from chat.errors import GatewayError, ToolInvocationError
from chat.mcp_bridge import ToolDescriptor
from fakes import FakeToolSession


class FakeCompletions:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def _client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def _response(content=None, tool_calls=None, finish_reason="stop"):
    message = SimpleNamespace(role="assistant", content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason=finish_reason)])


USER = [Message(role="user", content="hi")]


def test_text_answer_without_tools_omits_tool_keys() -> None:
    completions = FakeCompletions(_response(content="hello"))
    gateway = CompletionGateway(_client(completions), "deepseek-chat")

    result = asyncio.run(gateway.complete(USER, []))

    assert result.text == "hello"
    assert not result.requests_tools
    request = completions.requests[0]
    assert request["model"] == "deepseek-chat"
    assert request["messages"] == [{"role": "user", "content": "hi"}]
    assert "tools" not in request
    assert "tool_choice" not in request


def test_tools_are_sent_in_openai_format() -> None:
    completions = FakeCompletions(_response(content="ok"))
    gateway = CompletionGateway(_client(completions), "m")
    tool = ToolDescriptor(name="list_dir", description="List a directory", input_schema={"type": "object"})

    asyncio.run(gateway.complete(USER, [tool], model="other"))

    request = completions.requests[0]
    assert request["model"] == "other"
    assert request["tool_choice"] == "auto"
    assert request["tools"] == [
        {
            "type": "function",
            "function": {
                "name": "list_dir",
                "description": "List a directory",
                "parameters": {"type": "object"},
            },
        }
    ]


def test_tool_call_response_is_parsed_in_order() -> None:
    raw_calls = [
        SimpleNamespace(id="c1", function=SimpleNamespace(name="list_dir", arguments='{"path":"/tmp"}')),
        SimpleNamespace(id="c2", function=SimpleNamespace(name="read", arguments="{}")),
    ]
    completions = FakeCompletions(_response(tool_calls=raw_calls, finish_reason="tool_calls"))
    gateway = CompletionGateway(_client(completions), "m")

    result = asyncio.run(gateway.complete(USER))

    assert result.requests_tools
    assert result.text is None
    assert result.finish_reason == "tool_calls"
    assert [(c.id, c.name, c.arguments) for c in result.tool_calls] == [
        ("c1", "list_dir", '{"path":"/tmp"}'),
        ("c2", "read", "{}"),
    ]


def test_empty_choices_raise_gateway_error() -> None:
    gateway = CompletionGateway(_client(FakeCompletions(SimpleNamespace(choices=[]))), "m")

    with pytest.raises(GatewayError):
        asyncio.run(gateway.complete(USER))


def test_api_errors_raise_gateway_error() -> None:
    error = openai.APIConnectionError(request=httpx.Request("POST", "https://api.deepseek.com"))
    gateway = CompletionGateway(_client(FakeCompletions(error=error)), "m")

    with pytest.raises(GatewayError) as excinfo:
        asyncio.run(gateway.complete(USER))

    assert excinfo.value.cause is error


class StrictCompletions(FakeCompletions):
    """Rejects assistant tool calls that no tool message answers, like the real API."""

    async def create(self, **kwargs):
        messages = kwargs["messages"]
        for index, message in enumerate(messages):
            for call in message.get("tool_calls") or []:
                replies = {
                    m.get("tool_call_id")
                    for m in messages[index + 1:index + 1 + len(message["tool_calls"])]
                    if m["role"] == "tool"
                }
                if call["id"] not in replies:
                    raise openai.BadRequestError(
                        "tool_calls must be followed by tool messages",
                        response=httpx.Response(400, request=httpx.Request("POST", "https://api.deepseek.com")),
                        body=None,
                    )
        return await super().create(**kwargs)


def test_turn_after_failed_tool_call_still_reaches_the_model() -> None:
    """An unanswered tool call stays in the transcript but not on the wire."""

    raw_call = SimpleNamespace(id="c1", function=SimpleNamespace(name="list_dir", arguments="{}"))
    completions = StrictCompletions(_response(tool_calls=[raw_call], finish_reason="tool_calls"))
    gateway = CompletionGateway(_client(completions), "m")
    agent = ChatAgent(
        gateway=gateway,
        tool_session=FakeToolSession(outputs={"list_dir": RuntimeError("denied")}),
    )

    with pytest.raises(ToolInvocationError):
        asyncio.run(agent.respond("ls"))

    completions.response = _response(content="hello")
    answer = asyncio.run(agent.respond("hi"))

    assert answer == "hello"
    assert [m.role for m in agent.conversation] == ["user", "assistant", "user", "assistant"]
    assert agent.conversation.snapshot()[1].tool_calls[0].id == "c1"
    assert completions.requests[1]["messages"] == [
        {"role": "user", "content": "ls"},
        {"role": "user", "content": "hi"},
    ]


def test_partially_answered_tool_calls_keep_only_the_answered_ones() -> None:
    completions = FakeCompletions(_response(content="ok"))
    gateway = CompletionGateway(_client(completions), "m")
    messages = [
        Message(role="user", content="go"),
        Message(
            role="assistant",
            content=None,
            tool_calls=(ToolCall(id="1", name="ok"), ToolCall(id="2", name="bad")),
        ),
        Message(role="tool", content="done", tool_call_id="1"),
        Message(role="user", content="again"),
    ]

    asyncio.run(gateway.complete(messages))

    wire = completions.requests[0]["messages"]
    assert [m["role"] for m in wire] == ["user", "assistant", "tool", "user"]
    assert [c["id"] for c in wire[1]["tool_calls"]] == ["1"]
    assert wire[2]["tool_call_id"] == "1"
