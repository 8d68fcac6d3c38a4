from datetime import datetime, timedelta, timezone

import pytest

from querychat.core.context import AppContext
from querychat.core.errors import StorageError, UpstreamError
from querychat.core.turns import Turn
from querychat.prompting.schema import DOCUMENT_SCHEMA, RELATIONAL_SCHEMA


class FakeCompletion:
    """Records prompts and replies with a canned text or raises."""

    def __init__(self, reply="FIND skus", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeHistoryStore:
    """In-memory append-only turn log with newest-first reads."""

    def __init__(self, turns=None, fail_reads=False, fail_writes=False):
        self.turns = list(turns or [])
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.reads = 0
        self.closed = False

    def append(self, turn):
        if self.fail_writes:
            raise StorageError("write refused")
        self.turns.append(turn)

    def recent(self, limit):
        self.reads += 1
        if self.fail_reads:
            raise StorageError("read refused")
        ordered = sorted(self.turns, key=lambda t: t.timestamp, reverse=True)
        return ordered[:limit]

    def close(self):
        self.closed = True


def make_turns(count, start=None):
    start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        Turn(input=f"u{i}", output=f"a{i}", timestamp=start + timedelta(minutes=i))
        for i in range(1, count + 1)
    ]


def make_context(completion=None, history=None, **overrides):
    params = dict(
        completion=completion or FakeCompletion(),
        history=history,
        chat_schema=DOCUMENT_SCHEMA,
        query_schema=RELATIONAL_SCHEMA,
        chat_dialect="document",
        query_dialect="relational",
        history_window=5,
    )
    params.update(overrides)
    return AppContext(**params)


@pytest.fixture
def completion():
    return FakeCompletion()


@pytest.fixture
def failing_completion():
    return FakeCompletion(error=UpstreamError("GEMINI HTTP ERROR (429)"))


@pytest.fixture
def store():
    return FakeHistoryStore()
