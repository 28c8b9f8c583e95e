"""Single request/response exchange with an OpenAI-compatible chat API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

import openai

from .conversation import Message, ToolCall
from .errors import GatewayError
from .mcp_bridge import ToolDescriptor, format_tools_for_openai

if TYPE_CHECKING:
    from openai import AsyncOpenAI
    from app_config import Settings
else:  # pragma: no cover
    AsyncOpenAI = Any  # type: ignore[assignment]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionResult:
    text: Optional[str]
    tool_calls: Tuple[ToolCall, ...] = ()
    finish_reason: Optional[str] = None

    @property
    def requests_tools(self) -> bool:
        return bool(self.tool_calls)


def _parse_tool_calls(raw_calls: Optional[Sequence[Any]]) -> Tuple[ToolCall, ...]:
    if not raw_calls:
        return ()
    calls = []
    for call in raw_calls:
        function = getattr(call, "function", None)
        calls.append(
            ToolCall(
                id=getattr(call, "id", None) or "",
                name=getattr(function, "name", None) or "",
                arguments=getattr(function, "arguments", None) or "",
            )
        )
    return tuple(calls)


def _wire_messages(messages: Sequence[Message]) -> List[Dict[str, Any]]:
    """Serialize the transcript, leaving out tool calls that never got a reply.

    A failed tool call stays in the transcript, but chat APIs reject an
    assistant ``tool_calls`` entry that no ``tool`` message answers.
    """
    wire: List[Dict[str, Any]] = []
    for index, message in enumerate(messages):
        if message.role != "assistant" or not message.tool_calls:
            wire.append(message.to_message())
            continue

        answered = set()
        for following in messages[index + 1:]:
            if following.role != "tool":
                break
            answered.add(following.tool_call_id)

        calls = [call for call in message.tool_calls if call.id in answered]
        if len(calls) == len(message.tool_calls):
            wire.append(message.to_message())
            continue
        logger.debug(
            "Dropping %d unanswered tool call(s) from the request",
            len(message.tool_calls) - len(calls),
        )
        if not calls and message.content is None:
            continue
        entry: Dict[str, Any] = {"role": message.role, "content": message.content}
        if calls:
            entry["tool_calls"] = [call.to_dict() for call in calls]
        wire.append(entry)
    return wire


class CompletionGateway:
    """Stateless wrapper around ``chat.completions.create``. Never retries."""

    def __init__(self, client: AsyncOpenAI, model: str) -> None:
        self._client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: "Settings") -> "CompletionGateway":
        client = openai.AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            max_retries=0,
        )
        return cls(client, settings.model)

    async def complete(
        self,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolDescriptor]] = None,
        *,
        model: Optional[str] = None,
    ) -> CompletionResult:
        request: Dict[str, Any] = {
            "model": model or self.model,
            "messages": _wire_messages(messages),
        }
        if tools:
            request["tools"] = format_tools_for_openai(tools)
            request["tool_choice"] = "auto"

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Completion request:\n%s", json.dumps(request, indent=2, ensure_ascii=False, default=str))

        try:
            response = await self._client.chat.completions.create(**request)
        except openai.APIError as exc:
            raise GatewayError(f"Chat completion failed: {exc}", cause=exc) from exc

        choices = getattr(response, "choices", None)
        if not choices:
            raise GatewayError("Chat completion returned no choices")

        choice = choices[0]
        message = choice.message
        tool_calls = _parse_tool_calls(getattr(message, "tool_calls", None))
        return CompletionResult(
            text=None if tool_calls else message.content,
            tool_calls=tool_calls,
            finish_reason=getattr(choice, "finish_reason", None),
        )


__all__ = ["CompletionGateway", "CompletionResult"]
