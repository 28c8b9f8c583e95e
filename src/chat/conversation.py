"""Append-only conversation transcript for one chat session."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    arguments: str = ""

    def decoded_arguments(self) -> Dict[str, Any]:
        """Decode the JSON argument string the model produced."""
        if not self.arguments:
            return {}
        try:
            args = json.loads(self.arguments)
        except json.JSONDecodeError:
            logger.warning("Tool call %s sent invalid JSON arguments: %r", self.id, self.arguments)
            return {}
        if not isinstance(args, dict):
            logger.warning("Tool call %s sent non-object arguments: %r", self.id, self.arguments)
            return {}
        return args

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass(frozen=True)
class Message:
    role: str
    content: Optional[str]
    tool_calls: Optional[Tuple[ToolCall, ...]] = None
    tool_call_id: Optional[str] = None

    def to_message(self) -> Dict[str, Any]:
        """Return an OpenAI-compatible message dict."""
        message: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        if self.tool_call_id is not None:
            message["tool_call_id"] = self.tool_call_id
        return message


class Conversation:
    """Ordered transcript. Entries are only ever appended."""

    def __init__(self) -> None:
        self._messages: List[Message] = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())

    def append_user(self, text: str) -> Message:
        return self._append(Message(role="user", content=text))

    def append_assistant(
        self,
        content: Optional[str],
        tool_calls: Optional[Sequence[ToolCall]] = None,
    ) -> Message:
        calls = tuple(tool_calls) if tool_calls else None
        return self._append(Message(role="assistant", content=content, tool_calls=calls))

    def append_tool(self, content: str, tool_call_id: str) -> Message:
        pending = self._pending_tool_call_ids()
        if tool_call_id not in pending:
            raise ValueError(
                f"Tool result {tool_call_id!r} does not answer a call of the preceding assistant message"
            )
        return self._append(Message(role="tool", content=content, tool_call_id=tool_call_id))

    def snapshot(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def to_messages(self) -> List[Dict[str, Any]]:
        return [message.to_message() for message in self._messages]

    def _append(self, message: Message) -> Message:
        self._messages.append(message)
        return message

    def _pending_tool_call_ids(self) -> set[str]:
        # Walk back over tool results to the assistant message that requested them.
        for message in reversed(self._messages):
            if message.role == "tool":
                continue
            if message.role == "assistant" and message.tool_calls:
                return {call.id for call in message.tool_calls}
            break
        return set()


__all__ = ["Conversation", "Message", "ToolCall"]
