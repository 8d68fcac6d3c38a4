"""Per-process dependency container handed to every request handler.

Architectural role:
    Built once at startup (`build_context`) and passed explicitly into the
    handlers in `querychat.core.engine`; no handler reaches for module-level
    clients.

Detached writes:
    History writes are scheduled as background tasks that the response path
    never awaits. The context keeps a strong reference to each task until it
    finishes and logs its failure, and `aclose()` drains whatever is still
    pending before the store is closed.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from querychat.core.settings import DOCUMENT_DIALECT, RELATIONAL_DIALECT, Settings
from querychat.memory.history_store import HistoryStore, MongoHistoryStore
from querychat.llm.client import CompletionClient
from querychat.prompting.prompt_builder import DEFAULT_HISTORY_WINDOW
from querychat.prompting.schema import load_schema


logger = logging.getLogger(__name__)


class CompletionBackend(Protocol):
    """Minimal completion interface required by the handlers."""

    def complete(self, prompt: str) -> str:
        ...


@dataclass
class AppContext:
    """Collaborators and static configuration for one running process.

    Attributes:
        completion: Completion client.
        history: History store, or `None` for the stateless flavor.
        chat_schema: Schema text for chat prompts.
        query_schema: Schema text for query-generation prompts.
        chat_dialect: Dialect of chat prompts.
        query_dialect: Dialect of query-generation prompts.
        history_window: Turns fetched and rendered per chat request.
    """

    completion: CompletionBackend
    history: Optional[HistoryStore] = None
    chat_schema: str = ""
    query_schema: str = ""
    chat_dialect: str = DOCUMENT_DIALECT
    query_dialect: str = RELATIONAL_DIALECT
    history_window: int = DEFAULT_HISTORY_WINDOW
    _pending: set = field(default_factory=set, repr=False)

    def schedule(self, coro: Any, label: str = "background task") -> asyncio.Task:
        """Run `coro` detached; failures are logged, never raised to the caller."""
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)

        def _done(finished: asyncio.Task) -> None:
            self._pending.discard(finished)
            if finished.cancelled():
                logger.warning("%s was cancelled", label)
                return
            err = finished.exception()
            if err is not None:
                logger.error("%s failed: %s", label, err, exc_info=err)

        task.add_done_callback(_done)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all detached tasks scheduled so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        close = getattr(self.history, "close", None)
        if close is not None:
            close()


def build_context(settings: Settings) -> AppContext:
    """Construct the production collaborators from `settings`.

    Raises:
        StorageError: History is enabled but MongoDB is unreachable.
        OSError: `CHAT_SCHEMA_PATH` or `QUERY_SCHEMA_PATH` is set but unreadable.
    """
    history = None
    if settings.uses_history:
        history = MongoHistoryStore.connect(settings.mongo_uri)
    else:
        logger.info("History store disabled; chat runs stateless")

    context = AppContext(
        completion=CompletionClient.from_settings(settings),
        history=history,
        chat_schema=load_schema(settings.chat_dialect, settings.chat_schema_path),
        query_schema=load_schema(settings.query_dialect, settings.query_schema_path),
        chat_dialect=settings.chat_dialect,
        query_dialect=settings.query_dialect,
        history_window=settings.history_window,
    )
    logger.info(
        "Context ready: provider=%s model=%s history=%s window=%d chat_dialect=%s query_dialect=%s",
        settings.provider,
        settings.model_name,
        history is not None,
        settings.history_window,
        settings.chat_dialect,
        settings.query_dialect,
    )
    return context
