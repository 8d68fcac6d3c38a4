from unittest.mock import MagicMock

import pytest
import requests

from querychat.core.errors import UpstreamError
from querychat.llm.client import CompletionClient
from querychat.llm.provider_config import load_key
from querychat.llm.service import build_payload


def fake_session(json_body=None, error=None, status=200):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = json_body
    if status >= 400:
        http_error = requests.exceptions.HTTPError(response=response)
        response.raise_for_status.side_effect = http_error
    session = MagicMock()
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = response
    return session


def test_build_payload_wraps_prompt_as_single_user_message():
    payload = build_payload("hello", "m1")

    assert payload["model"] == "m1"
    assert payload["messages"] == [{"role": "user", "content": "hello"}]


def test_gemini_request_and_text_extraction():
    session = fake_session({
        "candidates": [{"content": {"parts": [{"text": " FIND "}, {"text": "skus "}]}}]
    })
    client = CompletionClient("gemini", "gemini-1.5-pro", api_key="k", timeout=12, session=session)

    assert client.complete("prompt text") == "FIND skus"

    args, kwargs = session.post.call_args
    assert args[0].endswith("/models/gemini-1.5-pro:generateContent")
    assert kwargs["headers"]["x-goog-api-key"] == "k"
    assert kwargs["json"]["contents"][0]["parts"][0]["text"] == "prompt text"
    assert kwargs["timeout"] == 12


def test_gemini_without_candidates_is_empty_completion():
    session = fake_session({"promptFeedback": {"blockReason": "SAFETY"}})
    client = CompletionClient("gemini", "gemini-1.5-pro", api_key="k", session=session)

    assert client.complete("prompt") == ""


def test_openai_compatible_provider():
    session = fake_session({"choices": [{"message": {"content": "SELECT 1;"}}]})
    client = CompletionClient("openai", "gpt-4o-mini", api_key="sk", session=session)

    assert client.complete("prompt") == "SELECT 1;"
    assert session.post.call_args.kwargs["headers"]["Authorization"] == "Bearer sk"


def test_local_provider_needs_no_key():
    session = fake_session({"choices": [{"message": {"content": None}}]})
    client = CompletionClient("local", "qwen", session=session)

    assert client.complete("prompt") == ""
    assert "Authorization" not in session.post.call_args.kwargs["headers"]


def test_anthropic_provider():
    session = fake_session({"content": [{"type": "text", "text": "db.skus.find({})"}]})
    client = CompletionClient("anthropic", "claude", api_key="ak", session=session)

    assert client.complete("prompt") == "db.skus.find({})"
    body = session.post.call_args.kwargs["json"]
    assert body["max_tokens"] == 1024
    assert body["messages"] == [{"role": "user", "content": "prompt"}]


def test_http_error_raises_sanitized_upstream_error():
    client = CompletionClient("gemini", "m", api_key="k", session=fake_session({}, status=429))

    with pytest.raises(UpstreamError, match=r"^GEMINI HTTP ERROR \(429\)$"):
        client.complete("prompt")


def test_timeout_raises_upstream_error():
    session = fake_session(error=requests.exceptions.ReadTimeout())
    client = CompletionClient("gemini", "m", api_key="k", session=session)

    with pytest.raises(UpstreamError, match="TIMED OUT"):
        client.complete("prompt")


def test_malformed_body_raises_upstream_error():
    client = CompletionClient("openai", "m", api_key="k", session=fake_session(["unexpected"]))

    with pytest.raises(UpstreamError, match="INVALID RESPONSE"):
        client.complete("prompt")


def test_missing_key_raises_without_calling_provider(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    session = fake_session({})
    client = CompletionClient("gemini", "m", session=session)

    with pytest.raises(UpstreamError, match="API KEY NOT CONFIGURED"):
        client.complete("prompt")
    session.post.assert_not_called()


def test_unknown_provider_rejected():
    with pytest.raises(ValueError):
        CompletionClient("nope", "m")


def test_load_key_resolution(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("GOOGLE_API_KEY", "from-google-env")
    assert load_key("gemini") == "from-google-env"

    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "openai.key").write_text("from-file\n")
    assert load_key("openai") == "from-file"

    assert load_key("local") is None


def test_non_json_success_body_raises_invalid_response():
    session = fake_session({})
    response = session.post.return_value
    response.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)
    client = CompletionClient("gemini", "m", api_key="k", session=session)

    with pytest.raises(UpstreamError, match=r"^GEMINI RETURNED AN INVALID RESPONSE$"):
        client.complete("prompt")
