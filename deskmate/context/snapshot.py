"""In-memory collaborators loaded from a JSON snapshot.

Used by the console entrypoint and tests in place of the real task, chat,
contact and calendar stores. Expected document shape::

    {
      "tasks": [{"id": "t1", "title": "...", "completed": false,
                 "description": "...", "dueDate": "2026-01-02T09:00:00Z",
                 "priority": "high", "createdAt": "..."}],
      "chats": {"chat1": [{"id": "m1", "text": "...", "senderId": "u1",
                           "timestamp": "..."}]},
      "chatsByEmail": {"alice@example.com": "chat1"},
      "contacts": [{"id": "c1", "name": "Alice", "email": "alice@example.com"}],
      "events": [{"id": "e1", "summary": "...", "start": "...", "end": "..."}]
    }
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from deskmate.actions.models import parse_datetime
from deskmate.models import CalendarEvent, ChatMessage, Contact, Task

LOGGER = logging.getLogger(__name__)


class SnapshotSources:
    """Serves one user's data from memory; implements every source protocol."""

    def __init__(
        self,
        tasks: list[Task] | None = None,
        chats: dict[str, list[ChatMessage]] | None = None,
        contacts: list[Contact] | None = None,
        events: list[CalendarEvent] | None = None,
        chats_by_email: dict[str, str] | None = None,
    ) -> None:
        self.tasks = list(tasks or [])
        self.chats = {chat_id: list(msgs) for chat_id, msgs in (chats or {}).items()}
        self.contacts = list(contacts or [])
        self.events = list(events or [])
        self.chats_by_email = {email.lower(): chat_id for email, chat_id in (chats_by_email or {}).items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SnapshotSources:
        return cls(
            tasks=[_task(item) for item in data.get("tasks", [])],
            chats={
                chat_id: [_message(chat_id, item) for item in messages]
                for chat_id, messages in data.get("chats", {}).items()
            },
            contacts=[
                Contact(id=str(item["id"]), name=item["name"], email=item["email"])
                for item in data.get("contacts", [])
            ],
            events=[_event(item) for item in data.get("events", [])],
            chats_by_email=data.get("chatsByEmail", {}),
        )

    @classmethod
    def from_json(cls, path: Path) -> SnapshotSources:
        LOGGER.info("Loading snapshot from %s", path)
        return cls.from_dict(json.loads(path.read_text(encoding="utf-8")))

    async def get_tasks(self, user_id: str) -> list[Task]:
        return list(self.tasks)

    async def get_all_chats_with_messages(self, user_id: str) -> dict[str, list[ChatMessage]]:
        return {chat_id: list(msgs) for chat_id, msgs in self.chats.items()}

    async def get_contacts(self) -> list[Contact]:
        return list(self.contacts)

    async def get_upcoming_events(self, user_id: str) -> list[CalendarEvent]:
        return list(self.events)

    async def find_or_create_chat(self, user_id: str, email: str) -> str:
        key = email.lower()
        chat_id = self.chats_by_email.get(key)
        if chat_id is None:
            chat_id = f"chat-{len(self.chats_by_email) + 1}"
            self.chats_by_email[key] = chat_id
            self.chats.setdefault(chat_id, [])
            LOGGER.info("Opened chat %s with %s", chat_id, email)
        return chat_id


def _optional_datetime(value: Any) -> datetime | None:
    return parse_datetime(value) if value else None


def _task(item: dict[str, Any]) -> Task:
    return Task(
        id=str(item["id"]),
        title=item["title"],
        completed=bool(item.get("completed", False)),
        description=item.get("description"),
        due_date=_optional_datetime(item.get("dueDate")),
        priority=item.get("priority"),
        created_at=_optional_datetime(item.get("createdAt")),
    )


def _message(chat_id: str, item: dict[str, Any]) -> ChatMessage:
    return ChatMessage(
        id=str(item["id"]),
        chat_id=chat_id,
        text=item["text"],
        sender_id=item.get("senderId", ""),
        timestamp=parse_datetime(item["timestamp"]),
    )


def _event(item: dict[str, Any]) -> CalendarEvent:
    return CalendarEvent(
        id=str(item["id"]),
        summary=item["summary"],
        start=parse_datetime(item["start"]),
        end=_optional_datetime(item.get("end")),
        description=item.get("description"),
        location=item.get("location"),
    )
