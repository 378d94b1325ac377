"""Append-only conversation history.

Messages are LangChain message objects, which the chat model converts to
the OpenAI wire format:

- SystemMessage      -> {"role": "system", ...}
- HumanMessage       -> {"role": "user", ...}
- AIMessage          -> {"role": "assistant", ...}, with a pending tool
                        request in additional_kwargs["function_call"]
- FunctionMessage    -> {"role": "function", "name": ..., ...}
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, SystemMessage

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


def function_call_of(message: BaseMessage) -> dict[str, Any] | None:
    """Return {"name", "arguments"} if message is an assistant tool request."""
    if not isinstance(message, AIMessage):
        return None
    call = message.additional_kwargs.get("function_call")
    if not call or not call.get("name"):
        return None
    return call


class MessageStore:
    """Ordered record of a session's messages. Nothing is ever removed."""

    def __init__(self, system_prompt: str | None = None) -> None:
        self._messages: list[BaseMessage] = []
        if system_prompt is not None:
            self.add(SystemMessage(content=system_prompt))

    def add(self, message: BaseMessage) -> None:
        self._messages.append(message)

    @property
    def messages(self) -> tuple[BaseMessage, ...]:
        """A snapshot of the history in insertion order."""
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[BaseMessage]:
        return iter(self.messages)
