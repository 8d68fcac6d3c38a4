"""Environment-driven runtime settings.

Architectural role:
    Centralizes every tunable used at process start: provider/model selection,
    store connection, history window size, dialects and HTTP port. Values are
    resolved once per process through `get_settings()`.

Determinism:
    Deterministic for a fixed process environment (plus `.env`, loaded at import).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


DOCUMENT_DIALECT = "document"
RELATIONAL_DIALECT = "relational"
DIALECTS = (DOCUMENT_DIALECT, RELATIONAL_DIALECT)

# Fixed storage names of the chat history collection.
HISTORY_DATABASE = "chat_history"
HISTORY_COLLECTION = "history"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_dialect(name: str, default: str) -> str:
    value = (os.getenv(name) or default).strip().lower()
    if value not in DIALECTS:
        raise ValueError(f"{name} must be one of {', '.join(DIALECTS)}, got {value!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration snapshot.

    Attributes:
        provider: Completion provider key (see `querychat.llm.provider_config.PROVIDERS`).
        model_name: Model identifier forwarded to the provider.
        llm_timeout: Seconds allowed for one completion HTTP call.
        mongo_uri: Store connection string; `None` disables history.
        history_enabled: Operator switch to run stateless even with a store.
        history_window: Maximum number of turns injected into a chat prompt.
        chat_dialect: Query dialect for the chat endpoint.
        query_dialect: Query dialect for the query-generation endpoint.
        chat_schema_path: Optional file replacing the built-in chat schema.
        query_schema_path: Optional file replacing the built-in query-generation schema.
        port: HTTP listen port.
        log_level: Root logging level name.
    """

    provider: str = "gemini"
    model_name: str = "gemini-1.5-pro"
    llm_timeout: float = 30.0
    mongo_uri: Optional[str] = None
    history_enabled: bool = True
    history_window: int = 5
    chat_dialect: str = DOCUMENT_DIALECT
    query_dialect: str = RELATIONAL_DIALECT
    chat_schema_path: Optional[str] = None
    query_schema_path: Optional[str] = None
    port: int = 3001
    log_level: str = "INFO"

    @property
    def uses_history(self) -> bool:
        return self.history_enabled and bool(self.mongo_uri)


def load_settings() -> Settings:
    """Build a `Settings` instance from the current environment.

    Raises:
        ValueError: A numeric or dialect variable holds an unusable value.
    """
    history_window = int(os.getenv("HISTORY_WINDOW", "5"))
    if history_window < 0:
        raise ValueError("HISTORY_WINDOW must not be negative")

    return Settings(
        provider=os.getenv("PROVIDER", "gemini").strip().lower(),
        model_name=os.getenv("MODEL_NAME", "gemini-1.5-pro"),
        llm_timeout=float(os.getenv("LLM_TIMEOUT", "30")),
        mongo_uri=os.getenv("MONGO_URI") or None,
        history_enabled=_env_bool("HISTORY_ENABLED", True),
        history_window=history_window,
        chat_dialect=_env_dialect("CHAT_DIALECT", DOCUMENT_DIALECT),
        query_dialect=_env_dialect("QUERY_DIALECT", RELATIONAL_DIALECT),
        chat_schema_path=os.getenv("CHAT_SCHEMA_PATH") or None,
        query_schema_path=os.getenv("QUERY_SCHEMA_PATH") or None,
        port=int(os.getenv("PORT", "3001")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
