import asyncio

from querychat.core.engine import (
    CHAT_FAILURE,
    CHAT_SUCCESS,
    NO_RESPONSE_FALLBACK,
    QUERY_FAILURE,
    QUERY_SUCCESS,
    handle_chat,
    handle_generate_query,
)
from querychat.core.errors import UpstreamError
from querychat.prompting.schema import DOCUMENT_SCHEMA

from conftest import FakeCompletion, FakeHistoryStore, make_context, make_turns


def run_chat(context, prompt):
    async def go():
        result = await handle_chat(context, prompt)
        await context.drain()
        return result
    return asyncio.run(go())


def run_query(context, query):
    return asyncio.run(handle_generate_query(context, query))


def test_chat_success_returns_model_text_and_persists_turn(completion, store):
    context = make_context(completion, store)

    result = run_chat(context, "list all SKUs")

    assert result == {"success": True, "response": "FIND skus", "message": CHAT_SUCCESS}
    assert len(store.turns) == 1
    assert store.turns[0].input == "list all SKUs"
    assert store.turns[0].output == "FIND skus"
    assert DOCUMENT_SCHEMA in completion.prompts[0]
    assert "list all SKUs" in completion.prompts[0]


def test_chat_missing_prompt_skips_collaborators(completion, store):
    context = make_context(completion, store)

    for prompt in (None, "", "   ", 7):
        result = run_chat(context, prompt)
        assert result == {"success": False, "error": "Prompt is required", "message": CHAT_FAILURE}

    assert completion.prompts == []
    assert store.reads == 0
    assert store.turns == []


def test_chat_failure_does_not_persist(failing_completion, store):
    context = make_context(failing_completion, store)

    result = run_chat(context, "list all SKUs")

    assert result["success"] is False
    assert result["error"] == "GEMINI HTTP ERROR (429)"
    assert result["message"] == CHAT_FAILURE
    assert "response" not in result
    assert store.turns == []


def test_chat_uses_fallback_for_empty_completion(store):
    context = make_context(FakeCompletion(reply="  "), store)

    result = run_chat(context, "anything")

    assert result["success"] is True
    assert result["response"] == NO_RESPONSE_FALLBACK


def test_chat_injects_only_five_newest_turns(completion):
    store = FakeHistoryStore(make_turns(100))
    context = make_context(completion, store)

    run_chat(context, "follow up")

    prompt = completion.prompts[0]
    assert prompt.count("\nAI: ") == 5
    assert prompt.index("User: u96\n") < prompt.index("User: u100\n")
    assert "User: u95\n" not in prompt


def test_chat_history_read_failure_degrades_to_empty_window(completion):
    store = FakeHistoryStore(make_turns(3), fail_reads=True)
    context = make_context(completion, store)

    result = run_chat(context, "still works")

    assert result["success"] is True
    assert "User: u1\n" not in completion.prompts[0]
    assert len(store.turns) == 4


def test_chat_write_failure_is_not_surfaced(completion):
    store = FakeHistoryStore(fail_writes=True)
    context = make_context(completion, store)

    result = run_chat(context, "hello")

    assert result["success"] is True
    assert context.pending == 0


def test_stateless_chat_without_store(completion):
    context = make_context(completion, history=None)

    result = run_chat(context, "hello")

    assert result["success"] is True
    section = completion.prompts[0].split("Chat history:\n", 1)[1].split("Use the chat history", 1)[0]
    assert section.strip() == ""


def test_unexpected_error_collapses_to_failure_envelope(store):
    context = make_context(FakeCompletion(error=RuntimeError("boom")), store)

    result = run_chat(context, "hello")

    assert result == {"success": False, "error": "boom", "message": CHAT_FAILURE}


def test_generate_query_success_uses_sql_field():
    completion = FakeCompletion(reply="SELECT DISTINCT client FROM skus UNION SELECT client FROM clients")
    store = FakeHistoryStore(make_turns(2))
    context = make_context(completion, store)

    result = run_query(context, "unique clients")

    assert result == {
        "success": True,
        "sqlQuery": "SELECT DISTINCT client FROM skus UNION SELECT client FROM clients",
        "message": QUERY_SUCCESS,
    }
    assert "UNION" in completion.prompts[0]
    assert "u1" not in completion.prompts[0]
    assert store.reads == 0
    assert len(store.turns) == 2


def test_generate_query_missing_query():
    completion = FakeCompletion()
    result = run_query(make_context(completion), "")

    assert result == {"success": False, "error": "Query is required", "message": QUERY_FAILURE}
    assert completion.prompts == []


def test_generate_query_upstream_failure():
    context = make_context(FakeCompletion(error=UpstreamError("GEMINI REQUEST TIMED OUT")))

    result = run_query(context, "unique clients")

    assert result == {"success": False, "error": "GEMINI REQUEST TIMED OUT", "message": QUERY_FAILURE}


def test_aclose_drains_and_closes_store(completion, store):
    context = make_context(completion, store)

    async def go():
        await handle_chat(context, "hello")
        await context.aclose()

    asyncio.run(go())

    assert len(store.turns) == 1
    assert store.closed is True


def test_model_text_is_trimmed_before_response_and_storage(store):
    context = make_context(FakeCompletion(reply="\n  db.skus.find({})  \n"), store)

    result = run_chat(context, "list all SKUs")

    assert result["response"] == "db.skus.find({})"
    assert store.turns[0].output == "db.skus.find({})"
