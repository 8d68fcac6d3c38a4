"""Prompt assembly for chat and query-generation requests.

This module is intentionally narrow: it only builds prompt strings from already
validated inputs. History retrieval, model invocation and persistence happen in
`querychat.core.engine`.

Design constraints:
    - Deterministic construction for identical inputs (no clock, no randomness).
    - Fixed ordering of prompt components per mode.
    - No hidden side effects (no I/O, no global state mutation).

Prompt safety model:
    - User text and stored history are interpolated as raw strings, so the
      literal user text is always recoverable from the prompt.
    - The history window is capped here as well as at the store, so the prompt
      never carries more than `max_turns` turns whatever the caller passes.
"""

from typing import Iterable, Optional, Sequence

from querychat.core.errors import InvalidInput
from querychat.core.settings import DOCUMENT_DIALECT, RELATIONAL_DIALECT
from querychat.core.turns import Turn


CHAT_MODE = "chat"
QUERY_MODE = "query"
MODES = (CHAT_MODE, QUERY_MODE)

DEFAULT_HISTORY_WINDOW = 5


# =========================================================
# CHAT ROLE + GUIDELINES (per dialect)
# =========================================================

CHAT_ROLE = {
    DOCUMENT_DIALECT: (
        "You are a MongoDB database assistant. "
        "You help users analyze data and generate MongoDB queries.\n\n"
        "Your task is to provide MongoDB queries based on the following "
        "NoSQL database schema:\n\n"
    ),
    RELATIONAL_DIALECT: (
        "You are a SQL database assistant. "
        "You help users analyze data and generate SQL queries.\n\n"
        "Your task is to provide SQL queries based on the following "
        "relational database schema:\n\n"
    ),
}

CHAT_GUIDELINES = {
    DOCUMENT_DIALECT: (
        "- Always return queries in **MongoDB format**, using JavaScript JSON syntax.\n"
        "- Do NOT return SQL queries.\n"
        "- Use MongoDB methods such as **find(), aggregate(), updateOne(), "
        "insertOne(), deleteOne()**.\n"
        "- Ensure the output is a properly formatted MongoDB query.\n"
        "- output should only have query, NOTHING extra\n"
    ),
    RELATIONAL_DIALECT: (
        "- Always return queries in **standard SQL**.\n"
        "- Do NOT return MongoDB queries.\n"
        "- Use explicit column lists and readable snake_case aliases.\n"
        "- Ensure the output is a single, properly formatted SQL statement.\n"
        "- output should only have query, NOTHING extra\n"
    ),
}


# =========================================================
# QUERY-GENERATION RULES (per dialect)
# =========================================================

QUERY_ROLE = {
    DOCUMENT_DIALECT: "You are an expert MongoDB query generator.\n\n",
    RELATIONAL_DIALECT: "You are an expert SQL query generator.\n\n",
}

QUERY_RULES = {
    DOCUMENT_DIALECT: (
        "- Return ONLY the MongoDB query. No explanations, comments or markdown.\n"
        "- Consider every collection in the schema before answering; do not stop "
        "at the first collection that matches.\n"
        "- When the request asks for all distinct or unique values of a field, "
        "combine the results of EVERY collection that contains that field "
        "(use $unionWith), not just the first match.\n"
        "- Use only collections and fields that exist in the schema.\n"
    ),
    RELATIONAL_DIALECT: (
        "- Return ONLY the SQL query. No explanations, comments or markdown.\n"
        "- Consider every table in the schema before answering; do not stop at "
        "the first table that matches.\n"
        "- When the request asks for all distinct or unique values of a column, "
        "UNION the results of EVERY table that contains that column, not just "
        "the first match.\n"
        "- Use only tables and columns that exist in the schema.\n"
        "- Prefer readable snake_case aliases for computed columns.\n"
    ),
}


def _require_text(user_input) -> str:
    if not isinstance(user_input, str) or not user_input.strip():
        raise InvalidInput("Input text is required")
    return user_input


def _check_dialect(dialect: str) -> None:
    if dialect not in CHAT_ROLE:
        raise ValueError(f"Unknown dialect: {dialect!r}")


def select_window(history: Optional[Iterable[Turn]], max_turns: int = DEFAULT_HISTORY_WINDOW) -> list:
    """Cap a newest-first history sequence and return it oldest-first.

    Args:
        history: Turns ordered newest-first, as the store returns them.
        max_turns: Maximum number of turns to keep.

    Returns:
        At most `max_turns` of the newest turns, in chronological order.
    """
    if not history or max_turns <= 0:
        return []
    newest_first = list(history)[:max_turns]
    newest_first.reverse()
    return newest_first


def render_history(window: Sequence[Turn]) -> str:
    """Render chronological turns as `User:`/`AI:` line pairs (empty for no turns)."""
    return "\n".join(f"User: {turn.input}\nAI: {turn.output}" for turn in window)


# =========================================================
# CHAT PROMPT
# =========================================================
# Prompt component order:
#   1) Dialect role statement
#   2) Literal schema descriptor
#   3) Dialect guidelines
#   4) Chat history (oldest first; header only when empty)
#   5) New user input as final `User:` turn
#   6) Assistant cue ("AI:")

def build_chat_prompt(schema: str, history, user_input: str, dialect: str = DOCUMENT_DIALECT,
                      max_turns: int = DEFAULT_HISTORY_WINDOW) -> str:
    """Build a history-aware chat prompt.

    Args:
        schema: Schema descriptor text, inserted verbatim.
        history: Recent turns, newest-first. `None` or empty renders an empty
            history section.
        user_input: New user text, inserted verbatim.
        dialect: `document` or `relational`.
        max_turns: History cap applied before rendering.

    Raises:
        InvalidInput: `user_input` missing, not a string, or blank.
        ValueError: Unknown dialect.
    """
    text = _require_text(user_input)
    _check_dialect(dialect)

    window = select_window(history, max_turns)

    return (
        CHAT_ROLE[dialect]
        + "Database schema:\n"
        + schema
        + "\n\nGuidelines:\n"
        + CHAT_GUIDELINES[dialect]
        + "\nChat history:\n"
        + render_history(window)
        + "\n\nUse the chat history to provide relevant answers.\n"
        + "\nUser: "
        + text
        + "\nAI:"
    )


# =========================================================
# QUERY-GENERATION PROMPT
# =========================================================
# Prompt component order:
#   1) Generator role
#   2) Literal schema descriptor
#   3) Hard formatting and cross-entity rules
#   4) Literal request
#   5) Cue ("Query:")

def build_query_prompt(schema: str, query: str, dialect: str = RELATIONAL_DIALECT) -> str:
    """Build a stateless query-generation prompt.

    Raises:
        InvalidInput: `query` missing, not a string, or blank.
        ValueError: Unknown dialect.
    """
    text = _require_text(query)
    _check_dialect(dialect)

    return (
        QUERY_ROLE[dialect]
        + "Database schema:\n"
        + schema
        + "\n\nRules:\n"
        + QUERY_RULES[dialect]
        + "\nRequest:\n"
        + text
        + "\n\nQuery:\n"
    )


def assemble(schema: str, history, user_input: str, mode: str = CHAT_MODE,
             dialect: Optional[str] = None, max_turns: int = DEFAULT_HISTORY_WINDOW) -> str:
    """Single entrypoint dispatching to the chat or query-generation builder.

    `history` is ignored in query mode. When `dialect` is omitted, chat mode
    defaults to `document` and query mode to `relational`.
    """
    if mode == CHAT_MODE:
        return build_chat_prompt(schema, history, user_input,
                                 dialect or DOCUMENT_DIALECT, max_turns)
    if mode == QUERY_MODE:
        return build_query_prompt(schema, user_input, dialect or RELATIONAL_DIALECT)
    raise ValueError(f"Unknown prompt mode: {mode!r}")
