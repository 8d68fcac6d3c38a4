"""Provider-specific transport client for completion requests.

Architectural role:
    Executes one HTTP request against the configured provider and extracts the
    generated text.

Model invocation flow:
    `CompletionClient.complete(prompt)` -> `service.build_payload` ->
    provider branch (OpenAI-compatible / Anthropic / Gemini) -> text.

Retry behavior:
    No retry loop is implemented. Each call is attempted once with the
    configured timeout.

Failure handling model:
    Transport, HTTP, credential and response-shape failures raise
    `UpstreamError` carrying a sanitized, provider-labeled message. A response
    with no generated text (for example a blocked Gemini candidate) is a
    successful empty completion and returns `""`.
"""

import logging

import requests

from querychat.core.errors import UpstreamError
from querychat.llm.provider_config import (
    ANTHROPIC_MAX_TOKENS,
    ANTHROPIC_VERSION,
    PROVIDERS,
    load_key,
)
from querychat.llm.service import build_payload


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def _build_sanitized_http_error(provider_name: str, err: requests.exceptions.RequestException) -> str:
    """Build provider-labeled HTTP error text without exposing raw internals."""
    status_code = None
    if getattr(err, "response", None) is not None:
        status_code = getattr(err.response, "status_code", None)

    label = str(provider_name or "provider").upper()
    if isinstance(err, requests.exceptions.Timeout):
        return f"{label} REQUEST TIMED OUT"
    if status_code:
        return f"{label} HTTP ERROR ({status_code})"
    return f"{label} HTTP ERROR"


class CompletionClient:
    """Single-call text completion against one configured provider.

    Args:
        provider: Key of `PROVIDERS`.
        model_name: Model identifier sent to the provider.
        api_key: Credential; resolved through `load_key` when omitted.
        timeout: Seconds allowed per HTTP call.
        session: Object exposing `post(...)`; defaults to the `requests` module.
    """

    def __init__(self, provider: str, model_name: str, api_key=None,
                 timeout: float = DEFAULT_TIMEOUT, session=None):
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown provider: {provider!r}")
        self.provider = provider
        self.model_name = model_name
        self.api_key = api_key if api_key is not None else load_key(provider)
        self.timeout = timeout
        self._http = session or requests

    @classmethod
    def from_settings(cls, settings) -> "CompletionClient":
        return cls(settings.provider, settings.model_name, timeout=settings.llm_timeout)

    def complete(self, prompt: str) -> str:
        """Send `prompt` and return the generated text (possibly empty).

        Raises:
            UpstreamError: Missing credential, network/HTTP failure, timeout,
                or an unparseable response body.
        """
        payload = build_payload(prompt, self.model_name)

        if PROVIDERS[self.provider]["key_file"] and not self.api_key:
            raise UpstreamError(f"{self.provider.upper()} API KEY NOT CONFIGURED")

        try:
            if self.provider == "anthropic":
                return self._send_anthropic(payload)
            if self.provider == "gemini":
                return self._send_gemini(payload)
            return self._send_openai_compatible(payload)
        except requests.exceptions.JSONDecodeError as err:
            # subclasses RequestException; a 200 with a non-JSON body is a shape failure
            raise UpstreamError(f"{self.provider.upper()} RETURNED AN INVALID RESPONSE") from err
        except requests.exceptions.RequestException as err:
            logger.warning("Completion request failed: provider=%s error=%s",
                           self.provider, type(err).__name__)
            raise UpstreamError(_build_sanitized_http_error(self.provider, err)) from err
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as err:
            raise UpstreamError(f"{self.provider.upper()} RETURNED AN INVALID RESPONSE") from err

    def _post(self, url: str, headers: dict, body: dict) -> dict:
        response = self._http.post(url, headers=headers, json=body, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    # ============================================================
    # OpenAI-compatible
    # ============================================================

    def _send_openai_compatible(self, payload: dict) -> str:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        data = self._post(PROVIDERS[self.provider]["url"], headers, payload)

        choices = data.get("choices") or []
        if not choices:
            return ""
        content = (choices[0].get("message") or {}).get("content")
        return (content or "").strip()

    # ============================================================
    # Anthropic
    # ============================================================

    def _send_anthropic(self, payload: dict) -> str:
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

        anthropic_payload = {
            "model": payload["model"],
            "max_tokens": ANTHROPIC_MAX_TOKENS,
            "messages": payload["messages"],
            "temperature": payload["temperature"],
        }

        data = self._post(PROVIDERS["anthropic"]["url"], headers, anthropic_payload)

        parts = [
            block.get("text", "")
            for block in data.get("content") or []
            if block.get("type", "text") == "text"
        ]
        return "".join(parts).strip()

    # ============================================================
    # Gemini
    # ============================================================

    def _send_gemini(self, payload: dict) -> str:
        url = PROVIDERS["gemini"]["url"].format(model=self.model_name)
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

        gemini_payload = {
            "contents": [
                {"role": "user", "parts": [{"text": msg["content"]}]}
                for msg in payload["messages"]
            ],
            "generationConfig": {
                "temperature": payload["temperature"],
                "topP": payload["top_p"],
            },
        }

        data = self._post(url, headers, gemini_payload)

        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts).strip()
