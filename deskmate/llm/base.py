"""LLM provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from deskmate.models import LLMResponse


class LLMProvider(ABC):
    """Abstract model provider used by the engine."""

    @property
    def is_configured(self) -> bool:
        """False when the provider cannot authenticate (for example, no API key)."""
        return True

    @abstractmethod
    async def generate(
        self,
        messages: list[dict[str, str]],
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """Generate a model response."""
