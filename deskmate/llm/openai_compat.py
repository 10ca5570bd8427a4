"""OpenAI-compatible chat-completions implementation of LLMProvider."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from deskmate.config import Settings
from deskmate.errors import AuthMismatchError, ConfigurationError, ProviderError, RateLimitError
from deskmate.llm.base import LLMProvider
from deskmate.models import LLMFunctionCall, LLMResponse

_LOGGER = logging.getLogger(__name__)


class OpenAICompatibleProvider(LLMProvider):
    """Single-shot chat completion with function calling; never retries."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    async def generate(
        self,
        messages: list[dict[str, str]],
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        if not self.is_configured:
            raise ConfigurationError("OpenAI API key is not configured")

        payload: dict[str, Any] = {
            "model": self._settings.openai_model,
            "messages": messages,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"

        timeout = httpx.Timeout(self._settings.request_timeout_seconds)
        try:
            async with httpx.AsyncClient(base_url=self._settings.openai_base_url, timeout=timeout) as client:
                response = await client.post(
                    "/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self._settings.openai_api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
        except httpx.HTTPError as exc:
            _LOGGER.error("Model request failed: %s", exc)
            raise ProviderError(f"Could not reach the AI service: {exc}") from exc

        if response.status_code >= 400:
            _raise_for_status(response)
        try:
            data = response.json()
            choice = data["choices"][0]["message"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderError("AI service returned an unexpected response") from exc
        finish_reason = data["choices"][0].get("finish_reason")
        content = choice.get("content") or ""
        function_call = _first_function_call(choice)
        _LOGGER.info(
            "LLM response: finish_reason=%r content=%r function_call=%r",
            finish_reason,
            content[:200],
            function_call.name if function_call else None,
        )
        return LLMResponse(content=content, function_call=function_call, raw=data)


def _first_function_call(message: dict[str, Any]) -> LLMFunctionCall | None:
    tool_calls = message.get("tool_calls") or []
    if tool_calls:
        if len(tool_calls) > 1:
            _LOGGER.warning("Model returned %d tool calls; using the first", len(tool_calls))
        function_data = tool_calls[0].get("function", {})
        return LLMFunctionCall(
            name=function_data.get("name", ""),
            arguments_json=_encoded_arguments(function_data.get("arguments")),
            call_id=tool_calls[0].get("id"),
        )
    legacy = message.get("function_call")
    if legacy:
        return LLMFunctionCall(name=legacy.get("name", ""), arguments_json=_encoded_arguments(legacy.get("arguments")))
    return None


def _encoded_arguments(arguments: Any) -> str:
    # Some compatible backends send arguments already decoded.
    if arguments is None or arguments == "":
        return "{}"
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments)


def _raise_for_status(response: httpx.Response) -> None:
    code = _error_code(response)
    _LOGGER.error("AI processing error: status=%s code=%s", response.status_code, code)
    if code == "mismatched_organization":
        raise AuthMismatchError()
    if response.status_code == 429:
        raise RateLimitError()
    if response.status_code in (401, 403):
        raise ConfigurationError()
    raise ProviderError(f"AI service returned HTTP {response.status_code}")


def _error_code(response: httpx.Response) -> str | None:
    try:
        error = response.json().get("error") or {}
    except ValueError:
        return None
    return error.get("code") if isinstance(error, dict) else None
