"""Prompt-to-payload adapter for LLM invocation.

Architectural role:
    Turns one fully assembled prompt into the provider-agnostic chat payload
    that `querychat.llm.client` remaps per provider.

Model call flow:
    prompt -> `build_payload` -> `CompletionClient.complete`.

Determinism:
    Payload construction is deterministic for fixed inputs. Generated output is
    not, because inference runs remotely.
"""

# Low temperature keeps generated queries close to the schema.
TEMPERATURE = 0.2
TOP_P = 0.9


def build_payload(prompt: str, model_name: str) -> dict:
    """Wrap `prompt` as a single user message with shared generation defaults.

    The prompt already carries its own role statement, so no separate system
    message is added.
    """
    return {
        "model": model_name,
        "messages": [
            {"role": "user", "content": prompt}
        ],
        "temperature": TEMPERATURE,
        "top_p": TOP_P,
    }
