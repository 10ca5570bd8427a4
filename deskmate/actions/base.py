"""Action contracts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from deskmate.actions.models import AIAction


@dataclass(slots=True)
class ActionRequest:
    """Caller facts an action may need while it is normalized."""

    user_id: str
    utterance: str
    time_zone: str
    current_chat_id: str | None = None


class ActionSpec(ABC):
    """Base class for every action the model may call."""

    name: str
    description: str
    parameters_schema: dict[str, Any]

    @abstractmethod
    async def build(self, arguments: dict[str, Any], request: ActionRequest) -> AIAction:
        """Turn decoded arguments into a typed action.

        Raises:
            pydantic.ValidationError: The arguments do not fit the action.
        """
