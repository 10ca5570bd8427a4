"""Core domain models used across layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Literal, Mapping

if TYPE_CHECKING:
    from deskmate.actions.models import AIAction

AIRole = Literal["user", "assistant", "system", "confirmation"]


@dataclass(slots=True)
class Task:
    """Task projection read from the task store."""

    id: str
    title: str
    completed: bool = False
    description: str | None = None
    due_date: datetime | None = None
    priority: str | None = None
    created_at: datetime | None = None


@dataclass(slots=True)
class ChatMessage:
    """Chat message projection read from the chat store."""

    id: str
    chat_id: str
    text: str
    sender_id: str
    timestamp: datetime


@dataclass(slots=True)
class Contact:
    """Address-book entry."""

    id: str
    name: str
    email: str


@dataclass(slots=True)
class CalendarEvent:
    """Calendar event projection read from the calendar provider."""

    id: str
    summary: str
    start: datetime
    end: datetime | None = None
    description: str | None = None
    location: str | None = None


@dataclass(slots=True)
class AIMessage:
    """One turn of an assistant conversation."""

    role: AIRole
    content: str
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Read-only snapshot of a user's data used to build one prompt."""

    user_id: str
    tasks: tuple[Task, ...] = ()
    chats_by_id: Mapping[str, tuple[ChatMessage, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    contacts: tuple[Contact, ...] = ()
    events: tuple[CalendarEvent, ...] = ()
    current_chat_id: str | None = None
    current_contact: Contact | None = None
    conversation_history: tuple[AIMessage, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tasks", tuple(self.tasks))
        object.__setattr__(self, "contacts", tuple(self.contacts))
        object.__setattr__(self, "events", tuple(self.events))
        object.__setattr__(self, "conversation_history", tuple(self.conversation_history))
        object.__setattr__(
            self,
            "chats_by_id",
            MappingProxyType({chat_id: tuple(msgs) for chat_id, msgs in dict(self.chats_by_id).items()}),
        )


@dataclass(slots=True)
class LLMFunctionCall:
    """Function invocation returned by an LLM provider, arguments still encoded."""

    name: str
    arguments_json: str
    call_id: str | None = None


@dataclass(slots=True)
class LLMResponse:
    """Result from an LLM generation request."""

    content: str
    function_call: LLMFunctionCall | None = None
    raw: dict[str, Any] | None = None


@dataclass(slots=True)
class AIResponse:
    """What the engine hands back to its caller."""

    text: str
    action: AIAction | None = None
    confirmation: str | None = None

    def __post_init__(self) -> None:
        if (self.action is None) != (self.confirmation is None):
            raise ValueError("confirmation must be set exactly when an action is set")


@dataclass(slots=True)
class TaskResponse:
    """A response recorded in a task thread."""

    response: AIResponse
    task_title: str | None = None


@dataclass(slots=True)
class TaskConversation:
    """Ordered history of assistant responses scoped to one task."""

    task_id: str
    parent_task_title: str
    responses: list[TaskResponse] = field(default_factory=list)

