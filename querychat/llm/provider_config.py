"""Provider endpoint map and credential lookup for the LLM layer.

Architectural role:
    Static data consumed by `querychat.llm.client`. Which provider and model are
    active is decided by `querychat.core.settings`, not here.

Failure behavior:
    Missing key material is represented as `None`; the client turns that into
    an `UpstreamError` at call time.
"""

import os


# OpenAI-compatible and provider-specific endpoint map.
PROVIDERS = {

    "local": {
        "url": "http://127.0.0.1:8080/v1/chat/completions",
        "key_file": None
    },

    "openai": {
        "url": "https://api.openai.com/v1/chat/completions",
        "key_file": "config/openai.key"
    },

    "groq": {
        "url": "https://api.groq.com/openai/v1/chat/completions",
        "key_file": "config/groq.key"
    },

    "openrouter": {
        "url": "https://openrouter.ai/api/v1/chat/completions",
        "key_file": "config/openrouter.key"
    },

    "anthropic": {
        "url": "https://api.anthropic.com/v1/messages",
        "key_file": "config/anthropic.key"
    },

    "gemini": {
        "url": (
            "https://generativelanguage.googleapis.com/v1beta/models/"
            "{model}:generateContent"
        ),
        "key_file": "config/gemini.key"
    },

}

# The Gemini key has historically been supplied as GOOGLE_API_KEY.
KEY_ENV_ALIASES = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
}

ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_MAX_TOKENS = 1024


def load_key(provider: str):
    """Load the API key for `provider` from the environment or its key file.

    Resolution order:
        1. Environment variables (`<PROVIDER>_API_KEY`, plus aliases such as
           `GOOGLE_API_KEY` for Gemini).
        2. Raw contents of the configured key file.

    Returns:
        Key string, or `None` when the provider needs none or none is found.
    """
    config = PROVIDERS.get(provider)
    if not config or not config["key_file"]:
        return None

    names = KEY_ENV_ALIASES.get(provider, (provider.upper() + "_API_KEY",))
    for name in names:
        value = os.getenv(name)
        if value:
            return value.strip()

    path = config["key_file"]
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None
