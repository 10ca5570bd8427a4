"""Per-task conversation threads and the response currently on screen."""

from __future__ import annotations

import logging
from dataclasses import replace

from deskmate.models import AIResponse, TaskConversation, TaskResponse

LOGGER = logging.getLogger(__name__)


class ConversationStore:
    """Owns every task thread; the engine is its only writer.

    A thread is created by the first response recorded for a task and only
    grows afterwards. Threads are never evicted; only
    :meth:`remove_task_conversation` deletes one.
    """

    def __init__(self) -> None:
        self._conversations: dict[str, TaskConversation] = {}
        self._active_response: AIResponse | None = None

    @property
    def active_response(self) -> AIResponse | None:
        return self._active_response

    def set_active_response(self, response: AIResponse) -> None:
        self._active_response = response

    def clear_active_response(self) -> None:
        """Drop the transient display pointer; task threads are kept."""

        self._active_response = None

    def record_response(
        self,
        response: AIResponse,
        task_id: str,
        parent_task_title: str,
        task_title: str | None = None,
    ) -> None:
        """Append a response to a task thread, creating the thread if needed.

        The parent title given on the first call is kept for the thread's lifetime.
        """
        conversation = self._conversations.get(task_id)
        if conversation is None:
            conversation = TaskConversation(task_id=task_id, parent_task_title=parent_task_title)
            self._conversations[task_id] = conversation
            LOGGER.debug("Started conversation for task %s", task_id)
        conversation.responses.append(TaskResponse(response=response, task_title=task_title))

    def get_task_responses(self, task_id: str) -> TaskConversation | None:
        """Return a copy of the task's thread, or None if it has none."""

        conversation = self._conversations.get(task_id)
        if conversation is None:
            return None
        return replace(conversation, responses=list(conversation.responses))

    def remove_task_conversation(self, task_id: str) -> bool:
        """Delete a task thread on explicit user dismissal."""

        return self._conversations.pop(task_id, None) is not None

    def task_ids(self) -> list[str]:
        return list(self._conversations)
