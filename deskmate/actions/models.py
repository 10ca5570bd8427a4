"""Typed action variants returned by the engine."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

Priority = Literal["low", "medium", "high"]


class _Parameters(BaseModel):
    """Action parameters accept the model's camelCase names or snake_case."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def parse_datetime(value: str) -> datetime:
    """Parse an ISO-8601 date or date-time, accepting a trailing ``Z``."""

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


class CreateTaskParameters(_Parameters):
    title: str = Field(min_length=1)
    description: str = ""
    priority: Priority = "medium"
    due_date: datetime | None = Field(default=None, alias="dueDate")

    @field_validator("description", mode="before")
    @classmethod
    def _blank_description(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("priority", mode="before")
    @classmethod
    def _default_priority(cls, value: object) -> object:
        if value is None or value == "":
            return "medium"
        return value.lower() if isinstance(value, str) else value

    @field_validator("due_date", mode="before")
    @classmethod
    def _coerce_due_date(cls, value: object) -> object:
        if value is None or value == "":
            return None
        if isinstance(value, str):
            return parse_datetime(value)
        return value


class SendMessageParameters(_Parameters):
    content: str
    chat_id: str | None = Field(default=None, alias="chatId")


class EventTime(_Parameters):
    date_time: str = Field(alias="dateTime", min_length=1)
    time_zone: str = Field(alias="timeZone", min_length=1)

    @field_validator("date_time")
    @classmethod
    def _iso_date_time(cls, value: str) -> str:
        parse_datetime(value)
        return value

    @field_validator("time_zone")
    @classmethod
    def _known_time_zone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone: {value!r}") from exc
        return value

    def as_datetime(self) -> datetime:
        return parse_datetime(self.date_time)


class CreateEventParameters(_Parameters):
    summary: str = Field(min_length=1)
    description: str = ""
    start: EventTime
    end: EventTime

    @field_validator("description", mode="before")
    @classmethod
    def _blank_description(cls, value: object) -> object:
        return "" if value is None else value


class UpdateEventParameters(_Parameters):
    event_id: str = Field(alias="eventId", min_length=1)
    summary: str | None = None
    description: str | None = None
    start: EventTime | None = None
    end: EventTime | None = None


class CreateTaskAction(BaseModel):
    type: Literal["create_task"] = "create_task"
    parameters: CreateTaskParameters


class SendMessageAction(BaseModel):
    type: Literal["send_message"] = "send_message"
    parameters: SendMessageParameters

    @property
    def is_deliverable(self) -> bool:
        """False when no destination chat could be resolved."""
        return bool(self.parameters.chat_id)


class CreateEventAction(BaseModel):
    type: Literal["create_event"] = "create_event"
    parameters: CreateEventParameters


class UpdateEventAction(BaseModel):
    type: Literal["update_event"] = "update_event"
    parameters: UpdateEventParameters


AIAction = Annotated[
    Union[CreateTaskAction, SendMessageAction, CreateEventAction, UpdateEventAction],
    Field(discriminator="type"),
]
