"""One-line confirmations shown after the assistant picks an action."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from deskmate.actions.models import AIAction, CreateEventAction, CreateTaskAction, SendMessageAction

DATE_FORMAT = "%b %d, %Y"
DATETIME_FORMAT = "%b %d, %Y at %I:%M %p"


def confirmation_for(action: AIAction, time_zone: str | None = None) -> str:
    """Describe an action for display only; never used to execute it."""

    if isinstance(action, SendMessageAction):
        return f'I\'ve sent your message: "{action.parameters.content}"'
    if isinstance(action, CreateTaskAction):
        text = f'I\'ve created a task: "{action.parameters.title}"'
        if action.parameters.due_date is not None:
            text += f" due on {_localize(action.parameters.due_date, time_zone).strftime(DATE_FORMAT)}"
        return text
    if isinstance(action, CreateEventAction):
        start = action.parameters.start
        when = _localize(start.as_datetime(), time_zone, start.time_zone)
        return f'I\'ve created an event: "{action.parameters.summary}" on {when.strftime(DATETIME_FORMAT)}'
    return "Action completed successfully."


def _localize(value: datetime, time_zone: str | None, naive_zone: str | None = None) -> datetime:
    # Naive values are wall-clock times in their own zone, shown as-is.
    if value.tzinfo is None:
        if naive_zone is None or time_zone is None:
            return value
        value = value.replace(tzinfo=ZoneInfo(naive_zone))
    if time_zone is None:
        return value
    return value.astimezone(ZoneInfo(time_zone))
