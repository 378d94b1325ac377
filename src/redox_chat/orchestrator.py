"""Drive one conversational turn, including at most one tool call.

The turn protocol:
1. Append the user's message.
2. Ask the model for a completion, offering the registry's declarations.
3. Append the assistant message.
4. No function_call on it -> its content is the answer.
5. Otherwise look up the tool, parse its raw arguments as JSON, and
   validate them into the tool's pydantic schema.
6. Run the tool (only if validation succeeded).
7. Append a function message carrying the result or the error text.
8. Ask the model again, without declarations, for the final answer.
9. Append that answer and return it.

Concept — recoverable vs. fatal errors:
    Anything caused by model output (unknown tool, arguments that are not
    JSON, arguments that fail validation) becomes text the model reads as
    the tool's result; the session goes on. Anything raised by a tool
    (Redox HTTP errors, signing errors) propagates and ends the turn.
"""

from __future__ import annotations

import enum
import json
import logging
from typing import Any

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, FunctionMessage, HumanMessage
from pydantic import ValidationError

from redox_chat.messages import MessageStore, function_call_of
from redox_chat.registry import FunctionRegistry

logger = logging.getLogger(__name__)


class TurnState(str, enum.Enum):
    """States a turn passes through. DIRECT_ANSWER is terminal."""

    AWAITING_MODEL_RESPONSE = "AwaitingModelResponse"
    DIRECT_ANSWER = "DirectAnswer"
    TOOL_CALL_REQUESTED = "ToolCallRequested"
    ARGUMENTS_INVALID = "ArgumentsInvalid"
    TOOL_EXECUTED = "ToolExecuted"
    AWAITING_FOLLOWUP_RESPONSE = "AwaitingFollowupResponse"


def function_not_found(name: str) -> str:
    return f"Function named {name} not found"


def invalid_arguments(name: str, detail: object) -> str:
    return f"Error parsing arguments for function {name}: {detail}"


def render_result(output: Any) -> str:
    """Tool output as message content: strings pass through, the rest is JSON."""
    if isinstance(output, str):
        return output
    return json.dumps(output, indent=2, default=str)


def message_text(message: BaseMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content
    return "".join(
        part if isinstance(part, str) else str(part.get("text", ""))
        for part in content
    )


class Orchestrator:
    """Runs conversational turns against a chat model and a tool registry.

    Attributes:
        model: Any LangChain chat model; ChatOpenAI in production.
        registry: Tools offered to the model.
        store: The session's message history, owned by this orchestrator.
        states: The states the most recent turn went through, in order.
    """

    def __init__(
        self,
        model: BaseChatModel,
        registry: FunctionRegistry,
        store: MessageStore | None = None,
    ) -> None:
        self.model = model
        self.registry = registry
        self.store = store if store is not None else MessageStore()
        self.states: list[TurnState] = []

    @property
    def last_state(self) -> TurnState | None:
        return self.states[-1] if self.states else None

    def _enter(self, state: TurnState) -> None:
        logger.debug("Turn state -> %s", state.value)
        self.states.append(state)

    async def _complete(self, with_functions: bool) -> BaseMessage:
        kwargs: dict[str, Any] = {}
        if with_functions and len(self.registry):
            kwargs["functions"] = self.registry.declarations()
        # Pass a snapshot so later appends don't alter what was sent.
        response = await self.model.ainvoke(list(self.store.messages), **kwargs)
        logger.info("Completion message: %r", response)
        self.store.add(response)
        return response

    async def complete_turn(self, user_input: str) -> str:
        """Process one user message and return the assistant's answer.

        Raises:
            Whatever a tool implementation raises (e.g. RedoxAPIError), and
            any error from the chat model itself.
        """
        self.states = []
        self.store.add(HumanMessage(content=user_input))

        self._enter(TurnState.AWAITING_MODEL_RESPONSE)
        response = await self._complete(with_functions=True)

        call = function_call_of(response)
        if call is None:
            self._enter(TurnState.DIRECT_ANSWER)
            return message_text(response)

        self._enter(TurnState.TOOL_CALL_REQUESTED)
        name = call["name"]
        raw_arguments = call.get("arguments") or ""
        logger.info("Model requested %s: %s", name, raw_arguments)

        result = await self._dispatch(name, raw_arguments)
        self.store.add(FunctionMessage(name=name, content=result))

        self._enter(TurnState.AWAITING_FOLLOWUP_RESPONSE)
        followup = await self._complete(with_functions=False)
        self._enter(TurnState.DIRECT_ANSWER)
        return message_text(followup)

    async def _dispatch(self, name: str, raw_arguments: str) -> str:
        """Validate and run a requested tool, returning its result as text."""
        fn = self.registry.get(name)
        if fn is None:
            logger.warning("Model requested unknown function %s", name)
            self._enter(TurnState.ARGUMENTS_INVALID)
            return function_not_found(name)

        # Some models send an empty string for argument-less calls.
        if not raw_arguments.strip():
            raw_arguments = "{}"

        try:
            parsed = json.loads(raw_arguments)
        except json.JSONDecodeError as exc:
            logger.warning("Arguments for %s are not valid JSON: %s", name, exc)
            self._enter(TurnState.ARGUMENTS_INVALID)
            return invalid_arguments(name, exc)

        try:
            validated = fn.schema.model_validate(parsed)
        except ValidationError as exc:
            logger.warning("Arguments for %s failed validation: %s", name, exc)
            self._enter(TurnState.ARGUMENTS_INVALID)
            return invalid_arguments(name, exc)

        output = await fn.func(validated)
        self._enter(TurnState.TOOL_EXECUTED)
        return render_result(output)
