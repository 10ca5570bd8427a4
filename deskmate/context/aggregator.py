"""Builds the per-request snapshot of a user's tasks, chats, contacts and events."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Sequence

from deskmate.context.sources import CalendarSource, ChatSource, ContactSource, TaskSource
from deskmate.models import AIMessage, Contact, RequestContext

LOGGER = logging.getLogger(__name__)


class ContextAggregator:
    """Reads every source concurrently and joins the results into a RequestContext.

    A source that fails or exceeds ``source_timeout_seconds`` contributes an
    empty collection to this request only. Nothing is cached, so the next
    request reads it again.
    """

    def __init__(
        self,
        task_source: TaskSource,
        chat_source: ChatSource,
        contact_source: ContactSource,
        calendar_source: CalendarSource,
        source_timeout_seconds: float | None = None,
    ) -> None:
        self._task_source = task_source
        self._chat_source = chat_source
        self._contact_source = contact_source
        self._calendar_source = calendar_source
        self._source_timeout_seconds = source_timeout_seconds

    async def build(
        self,
        user_id: str,
        *,
        current_chat_id: str | None = None,
        current_contact: Contact | None = None,
        conversation_history: Sequence[AIMessage] = (),
    ) -> RequestContext:
        tasks, chats, contacts, events = await asyncio.gather(
            self._read("tasks", self._task_source.get_tasks(user_id), []),
            self._read("chats", self._chat_source.get_all_chats_with_messages(user_id), {}),
            self._read("contacts", self._contact_source.get_contacts(), []),
            self._read("events", self._calendar_source.get_upcoming_events(user_id), []),
        )
        LOGGER.info(
            "Context for %s: tasks=%d chats=%d contacts=%d events=%d",
            user_id,
            len(tasks),
            len(chats),
            len(contacts),
            len(events),
        )
        return RequestContext(
            user_id=user_id,
            tasks=tasks,
            chats_by_id=chats,
            contacts=contacts,
            events=events,
            current_chat_id=current_chat_id,
            current_contact=current_contact,
            conversation_history=conversation_history,
        )

    async def _read(self, source: str, pending: Awaitable[Any], empty: Any) -> Any:
        try:
            if self._source_timeout_seconds is None:
                result = await pending
            else:
                result = await asyncio.wait_for(pending, timeout=self._source_timeout_seconds)
            return empty if result is None else result
        except asyncio.TimeoutError:
            LOGGER.warning("Reading %s timed out; continuing without them", source)
        except Exception:  # noqa: BLE001
            LOGGER.warning("Reading %s failed; continuing without them", source, exc_info=True)
        return empty
