"""Registry of actions declared to the model and parsing of its function calls."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from deskmate.actions.base import ActionRequest, ActionSpec
from deskmate.actions.models import AIAction
from deskmate.actions.specs import CreateEventSpec, CreateTaskSpec, SendMessageSpec
from deskmate.context.sources import ChatDirectory
from deskmate.errors import ParseError
from deskmate.models import LLMFunctionCall

LOGGER = logging.getLogger(__name__)


class ActionRegistry:
    """Explicit registry of callable actions."""

    def __init__(self) -> None:
        self._actions: dict[str, ActionSpec] = {}

    def register(self, action: ActionSpec) -> None:
        self._actions[action.name] = action

    def names(self) -> list[str]:
        return list(self._actions)

    def list_tool_specs(self) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": action.name,
                    "description": action.description,
                    "parameters": action.parameters_schema,
                },
            }
            for action in self._actions.values()
        ]

    async def parse(self, function_call: LLMFunctionCall, request: ActionRequest) -> AIAction:
        """Decode, validate and normalize one function call.

        Raises:
            ParseError: Arguments are not a JSON object, the function is not
                registered, or the arguments do not fit the action.
        """
        action = self._actions.get(function_call.name)
        if action is None:
            raise ParseError(f"Unknown action: {function_call.name}")

        arguments = _decode_arguments(function_call)
        try:
            parsed = await action.build(arguments, request)
        except ValidationError as exc:
            raise ParseError(f"Invalid arguments for {function_call.name}: {exc}") from exc
        LOGGER.info("Parsed action %s", parsed.type)
        return parsed


def default_registry(chat_directory: ChatDirectory | None = None) -> ActionRegistry:
    """Registry with the three actions offered to the model."""

    registry = ActionRegistry()
    registry.register(CreateTaskSpec())
    registry.register(SendMessageSpec(chat_directory))
    registry.register(CreateEventSpec())
    return registry


def _decode_arguments(function_call: LLMFunctionCall) -> dict[str, Any]:
    raw = function_call.arguments_json or "{}"
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ParseError(f"Malformed arguments for {function_call.name}: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ParseError(f"Arguments for {function_call.name} must be a JSON object")
    return parsed
