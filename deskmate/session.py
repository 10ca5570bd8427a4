"""One user's interactive assistant session."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from deskmate.engine import AssistantEngine
from deskmate.errors import AssistantError, SessionBusyError
from deskmate.models import AIMessage, AIResponse

LOGGER = logging.getLogger(__name__)


class AssistantSession:
    """Serializes requests for one conversation and drops abandoned results.

    At most one request is in flight per session; a second ``submit`` while
    one is running raises :class:`SessionBusyError`. ``abandon()`` starts a new
    generation so the pending result is discarded on arrival instead of being
    shown or recorded.
    """

    def __init__(self, engine: AssistantEngine, user_id: str) -> None:
        self._engine = engine
        self._user_id = user_id
        self._history: list[AIMessage] = []
        self._generation = 0
        self._processing = False
        self.last_response: AIResponse | None = None
        self.last_error: AssistantError | None = None

    @property
    def is_processing(self) -> bool:
        return self._processing

    @property
    def history(self) -> list[AIMessage]:
        return list(self._history)

    async def submit(
        self,
        text: str,
        *,
        task_id: str | None = None,
        parent_task_title: str | None = None,
        task_title: str | None = None,
        **context: Any,
    ) -> AIResponse | None:
        """Send one utterance; returns None if the session was abandoned meanwhile.

        ``context`` is passed to :meth:`AssistantEngine.respond`
        (``current_chat_id``, ``current_contact``).
        """
        if self._processing:
            raise SessionBusyError()

        self._generation += 1
        generation = self._generation
        self._processing = True
        self.last_error = None
        LOGGER.info("Processing user input with context (history=%d)", len(self._history))
        try:
            response = await self._engine.respond(self._user_id, text, tuple(self._history), **context)
        except AssistantError as exc:
            if generation != self._generation:
                LOGGER.info("Ignoring error from abandoned request: %s", exc)
                return None
            LOGGER.error("Error processing AI request: %s", exc)
            self.last_error = exc
            raise
        finally:
            if generation == self._generation:
                self._processing = False

        if generation != self._generation:
            LOGGER.info("Discarding response to abandoned request")
            return None

        self._engine.commit(
            response,
            task_id=task_id,
            parent_task_title=parent_task_title,
            task_title=task_title,
        )
        self._append_turns(text, response)
        self.last_response = response
        return response

    def abandon(self) -> None:
        """Forget the in-flight request, if any; its result will be ignored."""

        if self._processing:
            LOGGER.info("Abandoning in-flight request")
        self._generation += 1
        self._processing = False

    def reset(self) -> None:
        """Start a fresh conversation."""

        self.abandon()
        self._history.clear()
        self.last_response = None
        self.last_error = None
        self._engine.clear_active_response()

    def _append_turns(self, text: str, response: AIResponse) -> None:
        now = datetime.now(timezone.utc)
        self._history.append(AIMessage(role="user", content=text, timestamp=now))
        if response.text:
            self._history.append(AIMessage(role="assistant", content=response.text, timestamp=now))
        if response.confirmation:
            self._history.append(AIMessage(role="confirmation", content=response.confirmation, timestamp=now))
