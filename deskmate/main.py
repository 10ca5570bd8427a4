"""Console entrypoint."""

from __future__ import annotations

import asyncio
import json
import logging

from deskmate.actions.registry import default_registry
from deskmate.config import Settings, load_settings, warn_if_unconfigured
from deskmate.context.aggregator import ContextAggregator
from deskmate.context.snapshot import SnapshotSources
from deskmate.conversation_store import ConversationStore
from deskmate.engine import AssistantEngine
from deskmate.errors import AssistantError
from deskmate.llm.openai_compat import OpenAICompatibleProvider
from deskmate.prompt import PromptComposer
from deskmate.session import AssistantSession

logging.basicConfig(level=logging.INFO)
LOGGER = logging.getLogger(__name__)


def build_engine(settings: Settings, sources: SnapshotSources) -> AssistantEngine:
    """Wire the engine against one set of collaborators."""

    aggregator = ContextAggregator(
        task_source=sources,
        chat_source=sources,
        contact_source=sources,
        calendar_source=sources,
        source_timeout_seconds=settings.source_timeout_seconds,
    )
    return AssistantEngine(
        aggregator=aggregator,
        llm=OpenAICompatibleProvider(settings),
        registry=default_registry(chat_directory=sources),
        store=ConversationStore(),
        composer=PromptComposer(
            time_zone=settings.local_timezone,
            history_window_messages=settings.history_window_messages,
        ),
        time_zone=settings.local_timezone,
        request_timeout_seconds=settings.request_timeout_seconds,
    )


async def run() -> None:
    """Read utterances from stdin and print the assistant's replies."""

    settings = load_settings()
    warn_if_unconfigured(settings)

    sources = SnapshotSources.from_json(settings.snapshot_path) if settings.snapshot_path else SnapshotSources()
    session = AssistantSession(build_engine(settings, sources), settings.user_id)

    while True:
        try:
            text = await asyncio.to_thread(input, "> ")
        except EOFError:
            break
        text = text.strip()
        if not text:
            continue
        if text in ("/reset", "/clear"):
            session.reset()
            continue
        try:
            response = await session.submit(text)
        except AssistantError as exc:
            print(exc)
            continue
        if response is None:
            continue
        if response.text:
            print(response.text)
        if response.action is not None:
            print(response.confirmation)
            print(json.dumps(response.action.model_dump(mode="json", by_alias=True), indent=2))

    LOGGER.info("Assistant shutdown complete")


def main() -> None:
    """Synchronous wrapper for asyncio entrypoint."""

    asyncio.run(run())


if __name__ == "__main__":
    main()
