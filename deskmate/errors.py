"""Assistant error taxonomy."""

from __future__ import annotations


class AssistantError(Exception):
    """Base exception for engine failures.

    ``user_message`` is the text a caller can show to the end user.
    """

    user_message = "Something went wrong with the AI service. Please try again."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)


class ConfigurationError(AssistantError):
    """API key missing or rejected by the provider."""

    user_message = "Invalid API key. Please check your configuration."


class AuthMismatchError(ConfigurationError):
    """API key belongs to a different provider account or organization."""

    user_message = "API key configuration error. Please check your project settings."


class RateLimitError(AssistantError):
    """Provider quota exceeded."""

    user_message = "AI service quota exceeded. Please try again later."


class ProviderError(AssistantError):
    """Any other provider or transport failure."""


class ParseError(AssistantError):
    """Function-call arguments could not be turned into an action.

    ``text`` carries the model's prose for the turn, if it sent any.
    """

    user_message = "The assistant returned an action that could not be understood."

    def __init__(self, message: str | None = None, text: str = "") -> None:
        super().__init__(message)
        self.text = text


class SessionBusyError(AssistantError):
    """A request is already in flight for this session."""

    user_message = "Still working on the previous request."
