"""Request handlers: validate, fetch history, assemble, complete, persist, respond.

Control-flow model (chat):
    1. Validate the prompt.
    2. Fetch the most recent turns when a history store is configured; any
       store failure degrades to an empty window.
    3. Assemble the chat prompt.
    4. Call the completion client in a worker thread.
    5. On success schedule a detached history write and return the success
       envelope; on failure return the failure envelope without writing.

The query-generation handler runs the same pipeline without history and
without persistence, and reports the result under `sqlQuery`.

Error handling strategy:
    Every exception raised inside a handler, expected or not, is converted to
    the failure envelope. Handlers never raise.
"""

import asyncio
import logging

from querychat.core import envelope
from querychat.core.context import AppContext
from querychat.core.errors import InvalidInput, QueryChatError
from querychat.core.turns import Turn
from querychat.prompting.prompt_builder import CHAT_MODE, QUERY_MODE, assemble


logger = logging.getLogger(__name__)

NO_RESPONSE_FALLBACK = "No response generated."

CHAT_SUCCESS = "Response generated successfully"
CHAT_FAILURE = "Failed to generate response"
QUERY_SUCCESS = "SQL query generated successfully"
QUERY_FAILURE = "Failed to generate SQL query"


def _require(value, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(message)
    return value


def _log_failure(route: str, err: Exception) -> None:
    if isinstance(err, QueryChatError):
        logger.warning("%s failed: %s: %s", route, type(err).__name__, err)
    else:
        logger.exception("%s failed unexpectedly", route)


async def _fetch_history(context: AppContext) -> list:
    """Best-effort read of the newest turns; errors yield an empty window."""
    if context.history is None or context.history_window <= 0:
        return []
    try:
        return await asyncio.to_thread(context.history.recent, context.history_window)
    except Exception:
        logger.exception("Error fetching chat history; continuing without it")
        return []


async def _complete(context: AppContext, prompt: str) -> str:
    logger.debug("Sending prompt to completion client: %d chars", len(prompt))
    text = await asyncio.to_thread(context.completion.complete, prompt)
    return (text or "").strip()


def _persist_turn(context: AppContext, turn: Turn) -> None:
    context.schedule(asyncio.to_thread(context.history.append, turn), label="Storing chat history")


async def handle_chat(context: AppContext, prompt) -> dict:
    """Answer one chat prompt, with history when the context has a store.

    Returns:
        Success envelope with `response`, or failure envelope.
    """
    try:
        text = _require(prompt, "Prompt is required")

        history = await _fetch_history(context)
        full_prompt = assemble(
            context.chat_schema,
            history,
            text,
            mode=CHAT_MODE,
            dialect=context.chat_dialect,
            max_turns=context.history_window,
        )

        response = await _complete(context, full_prompt) or NO_RESPONSE_FALLBACK

        if context.history is not None:
            _persist_turn(context, Turn(input=text, output=response))

        logger.info("Chat answered: prompt_len=%d history_turns=%d response_len=%d",
                    len(text), len(history), len(response))
        return envelope.ok("response", response, CHAT_SUCCESS)
    except Exception as err:
        _log_failure("Chat request", err)
        return envelope.fail(err, CHAT_FAILURE)


async def handle_generate_query(context: AppContext, query) -> dict:
    """Generate one query from a natural-language request; stateless.

    Returns:
        Success envelope with `sqlQuery`, or failure envelope.
    """
    try:
        text = _require(query, "Query is required")

        full_prompt = assemble(
            context.query_schema,
            None,
            text,
            mode=QUERY_MODE,
            dialect=context.query_dialect,
        )

        generated = await _complete(context, full_prompt) or NO_RESPONSE_FALLBACK

        logger.info("Query generated: query_len=%d response_len=%d", len(text), len(generated))
        return envelope.ok("sqlQuery", generated, QUERY_SUCCESS)
    except Exception as err:
        _log_failure("Query generation", err)
        return envelope.fail(err, QUERY_FAILURE)
