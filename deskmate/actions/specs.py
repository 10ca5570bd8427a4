"""Actions declared to the model and how their arguments are normalized."""

from __future__ import annotations

import logging
import re
from typing import Any

from deskmate.actions.base import ActionRequest, ActionSpec
from deskmate.actions.models import (
    CreateEventAction,
    CreateEventParameters,
    CreateTaskAction,
    CreateTaskParameters,
    SendMessageAction,
    SendMessageParameters,
    UpdateEventAction,
    UpdateEventParameters,
)
from deskmate.context.sources import ChatDirectory

LOGGER = logging.getLogger(__name__)

# "send ... message ... to <email>"; only the address is captured.
_SEND_TO_EMAIL = re.compile(
    r"\bsend\b.*?\bmessage\b.*?\bto\s+([A-Za-z0-9._%+-]+@[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)+)",
    re.IGNORECASE | re.DOTALL,
)

_EVENT_TIME_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "dateTime": {"type": "string", "format": "date-time"},
        "timeZone": {"type": "string"},
    },
    "required": ["dateTime"],
}


def extract_destination_email(utterance: str) -> str | None:
    """Return the address in a "send a message to <email>" request, if any."""

    match = _SEND_TO_EMAIL.search(utterance)
    return match.group(1) if match else None


def fill_time_zone(value: Any, time_zone: str) -> Any:
    """Give an event boundary the caller's zone when the model left it out."""

    if isinstance(value, str):
        return {"dateTime": value, "timeZone": time_zone}
    if not isinstance(value, dict):
        return value
    filled = dict(value)
    if "time_zone" in filled and "timeZone" not in filled:
        filled["timeZone"] = filled.pop("time_zone")
    if not str(filled.get("timeZone") or "").strip():
        filled["timeZone"] = time_zone
    return filled


class CreateTaskSpec(ActionSpec):
    name = "create_task"
    description = "Create a new task for the user."
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "title": {"type": "string"},
            "description": {"type": "string"},
            "dueDate": {"type": "string", "format": "date-time"},
            "priority": {"type": "string", "enum": ["low", "medium", "high"]},
        },
        "required": ["title"],
    }

    async def build(self, arguments: dict[str, Any], request: ActionRequest) -> CreateTaskAction:
        return CreateTaskAction(parameters=CreateTaskParameters.model_validate(arguments))


class SendMessageSpec(ActionSpec):
    """Send a chat message.

    The caller's current chat always wins over the model's choice. Without one,
    the destination comes from an address in the user's own words, never from
    the model.
    """

    name = "send_message"
    description = "Send a message in a chat."
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "content": {"type": "string"},
            "chatId": {"type": "string"},
        },
        "required": ["content", "chatId"],
    }

    def __init__(self, chat_directory: ChatDirectory | None = None) -> None:
        self._chat_directory = chat_directory

    async def build(self, arguments: dict[str, Any], request: ActionRequest) -> SendMessageAction:
        parameters = SendMessageParameters.model_validate(arguments)
        chat_id = request.current_chat_id or await self._resolve_chat(request)
        return SendMessageAction(parameters=parameters.model_copy(update={"chat_id": chat_id}))

    async def _resolve_chat(self, request: ActionRequest) -> str | None:
        email = extract_destination_email(request.utterance)
        if email is None:
            LOGGER.info("send_message has no current chat and no address in the request")
            return None
        if self._chat_directory is None:
            LOGGER.warning("No chat directory configured; cannot open a chat with %s", email)
            return None
        try:
            return await self._chat_directory.find_or_create_chat(request.user_id, email)
        except Exception:  # noqa: BLE001
            LOGGER.warning("Chat lookup for %s failed", email, exc_info=True)
            return None


class CreateEventSpec(ActionSpec):
    name = "create_event"
    description = "Create a calendar event."
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "summary": {"type": "string"},
            "description": {"type": "string"},
            "start": _EVENT_TIME_SCHEMA,
            "end": _EVENT_TIME_SCHEMA,
        },
        "required": ["summary", "start", "end"],
    }

    async def build(self, arguments: dict[str, Any], request: ActionRequest) -> CreateEventAction:
        payload = dict(arguments)
        for key in ("start", "end"):
            if key in payload:
                payload[key] = fill_time_zone(payload[key], request.time_zone)
        return CreateEventAction(parameters=CreateEventParameters.model_validate(payload))


class UpdateEventSpec(ActionSpec):
    name = "update_event"
    description = "Change an existing calendar event."
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "eventId": {"type": "string"},
            "summary": {"type": "string"},
            "description": {"type": "string"},
            "start": _EVENT_TIME_SCHEMA,
            "end": _EVENT_TIME_SCHEMA,
        },
        "required": ["eventId"],
    }

    async def build(self, arguments: dict[str, Any], request: ActionRequest) -> UpdateEventAction:
        payload = dict(arguments)
        for key in ("start", "end"):
            if payload.get(key) is not None:
                payload[key] = fill_time_zone(payload[key], request.time_zone)
        return UpdateEventAction(parameters=UpdateEventParameters.model_validate(payload))
