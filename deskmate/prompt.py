"""Renders a RequestContext and conversation history into model messages."""

from __future__ import annotations

from datetime import datetime
from typing import Mapping, Sequence
from zoneinfo import ZoneInfo

from deskmate.models import AIMessage, CalendarEvent, ChatMessage, Contact, RequestContext, Task

DATE_FORMAT = "%b %d, %Y"
TIME_FORMAT = "%I:%M %p"
DATETIME_FORMAT = f"{DATE_FORMAT} {TIME_FORMAT}"

MAX_COMPLETED_TASKS = 5
MAX_CURRENT_CHAT_MESSAGES = 5
MAX_OTHER_CHATS = 3
MAX_OTHER_CHAT_MESSAGES = 3
MAX_UPCOMING_EVENTS = 5

_HISTORY_ROLES = {"user": "user", "assistant": "assistant", "confirmation": "assistant"}


def format_tasks_context(tasks: Sequence[Task]) -> str:
    """List incomplete tasks in full, then the most recently created completed ones."""

    if not tasks:
        return "No tasks available."

    incomplete = [task for task in tasks if not task.completed]
    completed = sorted(
        (task for task in tasks if task.completed),
        key=lambda task: task.created_at.timestamp() if task.created_at else float("-inf"),
        reverse=True,
    )[:MAX_COMPLETED_TASKS]

    lines = ["Incomplete Tasks:"]
    for task in incomplete:
        lines.append(f"- {task.title}")
        if task.description:
            lines.append(f"  Description: {task.description}")
        due = task.due_date.strftime(DATE_FORMAT) if task.due_date else "No due date"
        lines.append(f"  Due: {due}")
        lines.append(f"  Priority: {task.priority or 'none'}")
    if not incomplete:
        lines.append("None")

    lines.append("")
    lines.append("Recently Completed Tasks:")
    lines.extend(f"- {task.title}" for task in completed)
    if not completed:
        lines.append("None")
    return "\n".join(lines)


def format_messages_context(
    chats_by_id: Mapping[str, Sequence[ChatMessage]],
    current_chat_id: str | None = None,
) -> str:
    """Current chat first, then a few of the other most active chats, newest first."""

    sections: list[str] = []
    current = _newest_first(chats_by_id.get(current_chat_id, ())) if current_chat_id else []
    if current:
        lines = ["Current Chat Messages:"]
        lines.extend(_format_message(m) for m in current[:MAX_CURRENT_CHAT_MESSAGES])
        sections.append("\n".join(lines))

    others = [
        (chat_id, _newest_first(messages))
        for chat_id, messages in chats_by_id.items()
        if chat_id != current_chat_id and messages
    ]
    others.sort(key=lambda item: item[1][0].timestamp.timestamp(), reverse=True)
    if others:
        lines = ["Recent Chats:"]
        for chat_id, messages in others[:MAX_OTHER_CHATS]:
            lines.append(f"Chat {chat_id}:")
            lines.extend(f"  {_format_message(m)}" for m in messages[:MAX_OTHER_CHAT_MESSAGES])
        sections.append("\n".join(lines))

    if not sections:
        return "No messages available."
    return "\n\n".join(sections)


def format_contacts_context(contacts: Sequence[Contact], current_contact: Contact | None = None) -> str:
    if not contacts and current_contact is None:
        return "No contacts available."

    sections: list[str] = []
    if current_contact is not None:
        sections.append(f"Current Contact:\n{_format_contact(current_contact)}")
    lines = ["All Contacts:"]
    lines.extend(_format_contact(contact) for contact in contacts)
    if not contacts:
        lines.append("None")
    sections.append("\n".join(lines))
    return "\n\n".join(sections)


def format_events_context(events: Sequence[CalendarEvent], now: datetime) -> str:
    """Split events into today's and the next few after today.

    An event is "today" when it starts on now's calendar date; "upcoming" events
    start strictly after now on a later date, so no event is listed twice.
    """
    if not events:
        return "No upcoming events."

    dated = sorted(((_align(event.start, now), event) for event in events), key=lambda item: item[0])
    today = [(start, event) for start, event in dated if start.date() == now.date()]
    upcoming = [
        (start, event) for start, event in dated if start > now and start.date() != now.date()
    ][:MAX_UPCOMING_EVENTS]

    lines = ["Today's Events:"]
    lines.extend(f"- {start.strftime(TIME_FORMAT)} {event.summary}" for start, event in today)
    if not today:
        lines.append("None")
    lines.append("")
    lines.append("Upcoming Events:")
    lines.extend(f"- {start.strftime(DATETIME_FORMAT)} {event.summary}" for start, event in upcoming)
    if not upcoming:
        lines.append("None")
    return "\n".join(lines)


class PromptComposer:
    """Builds the chat-completion message list for one request."""

    def __init__(self, time_zone: str = "UTC", history_window_messages: int | None = None) -> None:
        self._time_zone = time_zone
        self._history_window_messages = history_window_messages

    def system_prompt(self, context: RequestContext, now: datetime | None = None) -> str:
        now = now or datetime.now(ZoneInfo(self._time_zone))
        return (
            "You are an AI assistant in a productivity app that manages the user's tasks, "
            "chats, contacts and calendar.\n"
            f"Current date and time: {now.strftime('%A, ' + DATETIME_FORMAT)} ({self._time_zone}).\n"
            "\n"
            "You can:\n"
            "1. Answer questions about tasks, messages, contacts and calendar events\n"
            "2. Create new tasks using create_task\n"
            "3. Send messages using send_message\n"
            "4. Create calendar events using create_event\n"
            "\n"
            'When the user refers to something as "that", "it" or "this", resolve it against '
            "the earlier turns of this conversation before answering or calling a function.\n"
            "Only call a function when the user asks for that action. "
            "Keep responses concise and action-oriented.\n"
            "\n"
            f"## Tasks\n{format_tasks_context(context.tasks)}\n"
            "\n"
            f"## Messages\n{format_messages_context(context.chats_by_id, context.current_chat_id)}\n"
            "\n"
            f"## Contacts\n{format_contacts_context(context.contacts, context.current_contact)}\n"
            "\n"
            f"## Calendar\n{format_events_context(context.events, now)}"
        )

    def history_turns(self, history: Sequence[AIMessage]) -> list[dict[str, str]]:
        """Map stored turns to chat messages, oldest first.

        Confirmations are sent as assistant turns. Stored ``system`` turns are
        not replayed: the composed system prompt is the only system message.
        """
        turns = [
            {"role": _HISTORY_ROLES[message.role], "content": message.content}
            for message in history
            if message.role in _HISTORY_ROLES
        ]
        if self._history_window_messages is not None:
            turns = turns[-self._history_window_messages :] if self._history_window_messages > 0 else []
        return turns

    def compose(
        self,
        context: RequestContext,
        user_input: str,
        now: datetime | None = None,
    ) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt(context, now)},
            *self.history_turns(context.conversation_history),
            {"role": "user", "content": user_input},
        ]


def _newest_first(messages: Sequence[ChatMessage]) -> list[ChatMessage]:
    return sorted(messages, key=lambda m: m.timestamp.timestamp(), reverse=True)


def _format_message(message: ChatMessage) -> str:
    return f"- [{message.timestamp.strftime(DATETIME_FORMAT)}] {message.sender_id}: {message.text}"


def _format_contact(contact: Contact) -> str:
    return f"- {contact.name} <{contact.email}>"


def _align(value: datetime, now: datetime) -> datetime:
    # Naive event times are wall-clock times in now's zone; a naive now is host local time.
    if now.tzinfo is None:
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.replace(tzinfo=None)
    if value.tzinfo is None:
        return value.replace(tzinfo=now.tzinfo)
    return value.astimezone(now.tzinfo)
