import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from deskmate.actions.models import CreateTaskAction, SendMessageAction
from deskmate.actions.registry import default_registry
from deskmate.context.aggregator import ContextAggregator
from deskmate.context.snapshot import SnapshotSources
from deskmate.conversation_store import ConversationStore
from deskmate.engine import AssistantEngine
from deskmate.errors import ConfigurationError, ParseError, ProviderError, RateLimitError
from deskmate.models import AIMessage, LLMFunctionCall, LLMResponse, Task


class FakeProvider:
    def __init__(self, response: LLMResponse, configured: bool = True) -> None:
        self.response = response
        self.is_configured = configured
        self.calls: list[tuple[list[dict[str, str]], list[dict] | None]] = []

    async def generate(self, messages, tools=None):  # noqa: ANN001, ANN201
        self.calls.append((messages, tools))
        return self.response


def _engine(llm, sources: SnapshotSources | None = None, store: ConversationStore | None = None, **kwargs):
    sources = sources or SnapshotSources(tasks=[Task(id="t1", title="Buy milk")])
    aggregator = ContextAggregator(sources, sources, sources, sources)
    return AssistantEngine(
        aggregator=aggregator,
        llm=llm,
        registry=default_registry(chat_directory=sources),
        store=store or ConversationStore(),
        time_zone="UTC",
        **kwargs,
    )


def _function_call(name: str, arguments: str) -> LLMResponse:
    return LLMResponse(content="", function_call=LLMFunctionCall(name=name, arguments_json=arguments))


@pytest.mark.asyncio
async def test_plain_text_reply():
    llm = FakeProvider(LLMResponse(content="You have one task."))
    engine = _engine(llm)

    response = await engine.process_input("user-1", "what do I have to do?")

    assert response.text == "You have one task."
    assert response.action is None
    assert response.confirmation is None
    assert engine.store.active_response is response


@pytest.mark.asyncio
async def test_prompt_and_schema_sent_to_provider():
    llm = FakeProvider(LLMResponse(content="ok"))
    history = [
        AIMessage(role="user", content="earlier", timestamp=datetime.now(timezone.utc)),
        AIMessage(role="assistant", content="reply", timestamp=datetime.now(timezone.utc)),
    ]

    await _engine(llm).process_input("user-1", "and now?", history)

    messages, tools = llm.calls[0]
    assert "- Buy milk" in messages[0]["content"]
    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
    assert messages[-1] == {"role": "user", "content": "and now?"}
    assert [t["function"]["name"] for t in tools] == ["create_task", "send_message", "create_event"]


@pytest.mark.asyncio
async def test_create_task_scenario():
    llm = FakeProvider(_function_call("create_task", '{"title": "Buy milk"}'))

    response = await _engine(llm).process_input("user-1", "remind me to buy milk")

    assert isinstance(response.action, CreateTaskAction)
    assert response.action.parameters.priority == "medium"
    assert response.action.parameters.description == ""
    assert response.action.parameters.due_date is None
    assert response.confirmation == 'I\'ve created a task: "Buy milk"'


@pytest.mark.asyncio
async def test_send_message_scenario_resolves_chat_by_email():
    directory = MagicMock()
    directory.find_or_create_chat = AsyncMock(return_value="chat123")
    sources = SnapshotSources()
    engine = AssistantEngine(
        aggregator=ContextAggregator(sources, sources, sources, sources),
        llm=FakeProvider(_function_call("send_message", '{"content": "hi", "chatId": "alice"}')),
        registry=default_registry(chat_directory=directory),
        store=ConversationStore(),
    )

    response = await engine.process_input("user-1", "send a message to alice@example.com saying hi")

    assert isinstance(response.action, SendMessageAction)
    assert response.action.parameters.content == "hi"
    assert response.action.parameters.chat_id == "chat123"
    directory.find_or_create_chat.assert_awaited_once_with("user-1", "alice@example.com")


@pytest.mark.asyncio
async def test_malformed_arguments_reject_without_touching_store():
    store = ConversationStore()
    llm = FakeProvider(
        LLMResponse(
            content="Creating it now.",
            function_call=LLMFunctionCall(name="create_task", arguments_json='{"title": "Buy'),
        )
    )

    with pytest.raises(ParseError) as excinfo:
        await _engine(llm, store=store).process_input("user-1", "add buy milk", task_id="task-1", parent_task_title="Groceries")

    assert excinfo.value.text == "Creating it now."
    assert store.active_response is None
    assert store.get_task_responses("task-1") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "start",
    [
        '{"dateTime": "tomorrow at noon"}',
        '{"dateTime": "2026-11-02T12:00:00", "timeZone": "Eastern Time"}',
    ],
)
async def test_unreadable_event_time_rejects_without_touching_store(start):
    store = ConversationStore()
    arguments = f'{{"summary": "Lunch", "start": {start}, "end": {{"dateTime": "2026-11-02T13:00:00"}}}}'
    llm = FakeProvider(_function_call("create_event", arguments))

    with pytest.raises(ParseError):
        await _engine(llm, store=store).process_input("user-1", "lunch tomorrow", task_id="task-1")

    assert store.active_response is None
    assert store.get_task_responses("task-1") is None


@pytest.mark.asyncio
async def test_missing_api_key_fails_fast():
    llm = FakeProvider(LLMResponse(content="never"), configured=False)

    with pytest.raises(ConfigurationError):
        await _engine(llm).process_input("user-1", "hello")

    assert llm.calls == []


@pytest.mark.asyncio
async def test_provider_errors_propagate():
    llm = MagicMock()
    llm.is_configured = True
    llm.generate = AsyncMock(side_effect=RateLimitError())
    store = ConversationStore()

    with pytest.raises(RateLimitError, match="try again later"):
        await _engine(llm, store=store).process_input("user-1", "hello")

    assert store.active_response is None
    llm.generate.assert_awaited_once()


@pytest.mark.asyncio
async def test_request_timeout_raises_provider_error():
    class SlowProvider(FakeProvider):
        async def generate(self, messages, tools=None):  # noqa: ANN001, ANN201
            await asyncio.sleep(5)

    engine = _engine(SlowProvider(LLMResponse(content="")), request_timeout_seconds=0.05)

    with pytest.raises(ProviderError):
        await engine.process_input("user-1", "hello")


@pytest.mark.asyncio
async def test_task_scoped_responses_are_appended():
    llm = FakeProvider(LLMResponse(content="Here is a plan."))
    engine = _engine(llm)

    await engine.process_input("user-1", "plan it", task_id="task-1", parent_task_title="Trip")
    await engine.process_input("user-1", "more", task_id="task-1", parent_task_title="Other", task_title="Flights")

    conversation = engine.get_task_conversation("task-1")
    assert conversation.parent_task_title == "Trip"
    assert len(conversation.responses) == 2
    assert conversation.responses[1].task_title == "Flights"

    engine.clear_active_response()
    assert engine.store.active_response is None
    assert engine.get_task_conversation("task-1") is not None
