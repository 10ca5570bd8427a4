"""Assistant engine: context, prompt, model call, action parsing."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from deskmate.actions.base import ActionRequest
from deskmate.actions.confirmation import confirmation_for
from deskmate.actions.models import AIAction, SendMessageAction
from deskmate.actions.registry import ActionRegistry
from deskmate.context.aggregator import ContextAggregator
from deskmate.conversation_store import ConversationStore
from deskmate.errors import ConfigurationError, ParseError, ProviderError
from deskmate.llm.base import LLMProvider
from deskmate.models import AIMessage, AIResponse, Contact, TaskConversation
from deskmate.prompt import PromptComposer

LOGGER = logging.getLogger(__name__)


class AssistantEngine:
    """Turns one user utterance into an AIResponse.

    The engine never executes actions; callers run them against the task,
    chat or calendar store. A ``send_message`` action whose ``chat_id`` is
    None has no destination and must not be executed.
    """

    def __init__(
        self,
        aggregator: ContextAggregator,
        llm: LLMProvider,
        registry: ActionRegistry,
        store: ConversationStore,
        composer: PromptComposer | None = None,
        time_zone: str = "UTC",
        request_timeout_seconds: float = 30.0,
    ) -> None:
        self._aggregator = aggregator
        self._llm = llm
        self._registry = registry
        self._store = store
        self._composer = composer or PromptComposer(time_zone=time_zone)
        self._time_zone = time_zone
        self._request_timeout_seconds = request_timeout_seconds

    @property
    def store(self) -> ConversationStore:
        return self._store

    async def process_input(
        self,
        user_id: str,
        utterance: str,
        conversation_history: Sequence[AIMessage] = (),
        *,
        current_chat_id: str | None = None,
        current_contact: Contact | None = None,
        task_id: str | None = None,
        parent_task_title: str | None = None,
        task_title: str | None = None,
    ) -> AIResponse:
        """Answer or pick an action for one utterance.

        On success the response becomes the store's active response and, when
        ``task_id`` is given, is appended to that task's thread. On failure the
        store is left untouched.

        Raises:
            ConfigurationError: No usable API key, or the provider rejected it.
            RateLimitError: Provider quota exceeded.
            ParseError: The model's function call could not be parsed; the
                model's text for the turn is on ``ParseError.text``.
            ProviderError: Timeout or any other provider failure.
        """
        response = await self.respond(
            user_id,
            utterance,
            conversation_history,
            current_chat_id=current_chat_id,
            current_contact=current_contact,
        )
        self.commit(response, task_id=task_id, parent_task_title=parent_task_title, task_title=task_title)
        return response

    async def respond(
        self,
        user_id: str,
        utterance: str,
        conversation_history: Sequence[AIMessage] = (),
        *,
        current_chat_id: str | None = None,
        current_contact: Contact | None = None,
    ) -> AIResponse:
        """Build a response without touching the conversation store."""

        if not self._llm.is_configured:
            raise ConfigurationError("OpenAI API key is not configured")

        LOGGER.info("Processing input for %s (history=%d)", user_id, len(conversation_history))
        context = await self._aggregator.build(
            user_id,
            current_chat_id=current_chat_id,
            current_contact=current_contact,
            conversation_history=conversation_history,
        )
        messages = self._composer.compose(context, utterance)

        try:
            llm_response = await asyncio.wait_for(
                self._llm.generate(messages, tools=self._registry.list_tool_specs()),
                timeout=self._request_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderError("The AI service took too long to respond. Please try again.") from exc

        text = llm_response.content
        action: AIAction | None = None
        if llm_response.function_call is not None:
            request = ActionRequest(
                user_id=user_id,
                utterance=utterance,
                time_zone=self._time_zone,
                current_chat_id=current_chat_id,
            )
            try:
                action = await self._registry.parse(llm_response.function_call, request)
            except ParseError as exc:
                exc.text = text
                LOGGER.error("Dropping action %s: %s", llm_response.function_call.name, exc)
                raise
            if isinstance(action, SendMessageAction) and not action.is_deliverable:
                LOGGER.warning("send_message has no destination chat")

        return AIResponse(
            text=text,
            action=action,
            confirmation=confirmation_for(action, self._time_zone) if action is not None else None,
        )

    def commit(
        self,
        response: AIResponse,
        *,
        task_id: str | None = None,
        parent_task_title: str | None = None,
        task_title: str | None = None,
    ) -> None:
        """Show a response and, for task-scoped requests, append it to the task thread."""

        self._store.set_active_response(response)
        if task_id is not None:
            self._store.record_response(response, task_id, parent_task_title or "", task_title)

    def get_task_conversation(self, task_id: str) -> TaskConversation | None:
        return self._store.get_task_responses(task_id)

    def record_response(
        self,
        response: AIResponse,
        task_id: str,
        parent_task_title: str,
        task_title: str | None = None,
    ) -> None:
        self._store.record_response(response, task_id, parent_task_title, task_title)

    def clear_active_response(self) -> None:
        self._store.clear_active_response()
