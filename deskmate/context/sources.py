"""Collaborator protocols the engine reads from.

The stores behind these protocols own the domain entities; the engine only
reads projections and, for message routing, asks the chat store to find or
open a conversation with an address.
"""

from __future__ import annotations

from typing import Mapping, Protocol, Sequence

from deskmate.models import CalendarEvent, ChatMessage, Contact, Task


class TaskSource(Protocol):
    async def get_tasks(self, user_id: str) -> Sequence[Task]:
        """Return every task owned by the user."""
        ...


class ChatSource(Protocol):
    async def get_all_chats_with_messages(self, user_id: str) -> Mapping[str, Sequence[ChatMessage]]:
        """Return messages of every chat the user takes part in, keyed by chat id."""
        ...


class ContactSource(Protocol):
    async def get_contacts(self) -> Sequence[Contact]:
        """Return the device or account address book."""
        ...


class CalendarSource(Protocol):
    async def get_upcoming_events(self, user_id: str) -> Sequence[CalendarEvent]:
        """Return today's and upcoming events for the user."""
        ...


class ChatDirectory(Protocol):
    async def find_or_create_chat(self, user_id: str, email: str) -> str:
        """Return the id of the user's chat with ``email``, opening one if needed."""
        ...
