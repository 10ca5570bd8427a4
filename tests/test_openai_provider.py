"""Tests for OpenAICompatibleProvider."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from deskmate.actions.base import ActionRequest
from deskmate.actions.models import CreateTaskAction
from deskmate.actions.registry import default_registry
from deskmate.config import Settings
from deskmate.errors import AuthMismatchError, ConfigurationError, ProviderError, RateLimitError
from deskmate.llm.openai_compat import OpenAICompatibleProvider


def _settings(api_key: str | None = "test-key") -> Settings:
    return Settings(_env_file=None, OPENAI_API_KEY=api_key, OPENAI_MODEL="test-model")


def _mock_response(data: dict, status_code: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data
    return resp


def _mock_client(response: MagicMock | None = None, side_effect: Exception | None = None) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client.post = AsyncMock(return_value=response, side_effect=side_effect)
    return mock_client


def _completion(message: dict, finish_reason: str = "stop") -> dict:
    return {"choices": [{"message": message, "finish_reason": finish_reason}]}


@pytest.mark.asyncio
async def test_text_reply():
    mock_client = _mock_client(_mock_response(_completion({"role": "assistant", "content": "Hello!"})))

    with patch("deskmate.llm.openai_compat.httpx.AsyncClient", return_value=mock_client):
        result = await OpenAICompatibleProvider(_settings()).generate([{"role": "user", "content": "hi"}])

    assert result.content == "Hello!"
    assert result.function_call is None


@pytest.mark.asyncio
async def test_tool_call_arguments_left_encoded():
    message = {
        "role": "assistant",
        "content": None,
        "tool_calls": [
            {
                "id": "call_1",
                "type": "function",
                "function": {"name": "create_task", "arguments": '{"title": "Buy milk"'},
            }
        ],
    }
    mock_client = _mock_client(_mock_response(_completion(message, "tool_calls")))
    tools = [{"type": "function", "function": {"name": "create_task", "parameters": {}}}]

    with patch("deskmate.llm.openai_compat.httpx.AsyncClient", return_value=mock_client):
        result = await OpenAICompatibleProvider(_settings()).generate([{"role": "user", "content": "x"}], tools=tools)

    assert result.content == ""
    assert result.function_call.name == "create_task"
    assert result.function_call.arguments_json == '{"title": "Buy milk"'
    assert result.function_call.call_id == "call_1"

    payload = mock_client.post.call_args.kwargs["json"]
    assert payload["model"] == "test-model"
    assert payload["tools"] == tools
    assert payload["tool_choice"] == "auto"
    headers = mock_client.post.call_args.kwargs["headers"]
    assert headers["Authorization"] == "Bearer test-key"


@pytest.mark.asyncio
async def test_legacy_function_call():
    message = {"role": "assistant", "content": "", "function_call": {"name": "send_message", "arguments": "{}"}}
    mock_client = _mock_client(_mock_response(_completion(message, "function_call")))

    with patch("deskmate.llm.openai_compat.httpx.AsyncClient", return_value=mock_client):
        result = await OpenAICompatibleProvider(_settings()).generate([])

    assert result.function_call.name == "send_message"
    assert result.function_call.call_id is None


@pytest.mark.asyncio
async def test_decoded_tool_call_arguments_are_reencoded():
    message = {
        "role": "assistant",
        "content": None,
        "tool_calls": [
            {"id": "call_1", "type": "function", "function": {"name": "create_task", "arguments": {"title": "Buy milk"}}}
        ],
    }
    mock_client = _mock_client(_mock_response(_completion(message, "tool_calls")))

    with patch("deskmate.llm.openai_compat.httpx.AsyncClient", return_value=mock_client):
        result = await OpenAICompatibleProvider(_settings()).generate([])

    assert result.function_call.arguments_json == json.dumps({"title": "Buy milk"})
    request = ActionRequest(user_id="user-1", utterance="buy milk", time_zone="UTC")
    action = await default_registry().parse(result.function_call, request)
    assert isinstance(action, CreateTaskAction)
    assert action.parameters.title == "Buy milk"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "body", "expected"),
    [
        (429, {"error": {"code": "rate_limit_exceeded"}}, RateLimitError),
        (401, {"error": {"code": "invalid_api_key"}}, ConfigurationError),
        (401, {"error": {"code": "mismatched_organization"}}, AuthMismatchError),
        (500, {}, ProviderError),
    ],
)
async def test_error_statuses_are_mapped(status_code, body, expected):
    mock_client = _mock_client(_mock_response(body, status_code=status_code))

    with patch("deskmate.llm.openai_compat.httpx.AsyncClient", return_value=mock_client):
        with pytest.raises(expected):
            await OpenAICompatibleProvider(_settings()).generate([])

    mock_client.post.assert_awaited_once()


@pytest.mark.asyncio
async def test_transport_error_is_provider_error():
    mock_client = _mock_client(side_effect=httpx.ConnectError("boom"))

    with patch("deskmate.llm.openai_compat.httpx.AsyncClient", return_value=mock_client):
        with pytest.raises(ProviderError):
            await OpenAICompatibleProvider(_settings()).generate([])


@pytest.mark.asyncio
async def test_missing_key_never_calls_network():
    with patch("deskmate.llm.openai_compat.httpx.AsyncClient") as client_cls:
        provider = OpenAICompatibleProvider(_settings(api_key=None))
        assert provider.is_configured is False
        with pytest.raises(ConfigurationError):
            await provider.generate([])

    client_cls.assert_not_called()
