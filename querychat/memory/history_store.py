"""Append-only chat history backed by MongoDB.

Purpose of this abstraction:
    Give the chat handler a two-call persistence surface (`append`, `recent`)
    so it never touches driver objects directly.

Storage layout:
    Database `chat_history`, collection `history`; one document per turn with
    fields `user`, `ai`, `timestamp`. Documents are only ever inserted.

Failure handling:
    Driver errors are re-raised as `StorageError`. Whether a failure is fatal
    is the caller's decision; the chat handler treats both calls as best-effort.

Concurrency:
    No client-side locking. Concurrent writers append independently and a read
    may miss a turn written by a concurrent request.
"""

import logging
from typing import List, Protocol

from pymongo import DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from querychat.core.errors import StorageError
from querychat.core.settings import HISTORY_COLLECTION, HISTORY_DATABASE
from querychat.core.turns import Turn


logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_MS = 5000


class HistoryStore(Protocol):
    """Minimal persistence interface consumed by the chat handler."""

    def append(self, turn: Turn) -> None:
        """Persist one turn."""
        ...

    def recent(self, limit: int) -> List[Turn]:
        """Return at most `limit` turns, newest first."""
        ...


def turn_to_document(turn: Turn) -> dict:
    return {"user": turn.input, "ai": turn.output, "timestamp": turn.timestamp}


def document_to_turn(doc: dict) -> Turn:
    return Turn(
        input=str(doc.get("user", "")),
        output=str(doc.get("ai", "")),
        timestamp=doc.get("timestamp"),
    )


class MongoHistoryStore:
    """`HistoryStore` over a pymongo collection."""

    def __init__(self, collection, client=None):
        self._collection = collection
        self._client = client

    @classmethod
    def connect(cls, uri: str, database: str = HISTORY_DATABASE,
                collection: str = HISTORY_COLLECTION) -> "MongoHistoryStore":
        """Open a client, verify the server answers, and bind the history collection.

        Raises:
            StorageError: The server cannot be reached or rejected the ping.
        """
        client = MongoClient(uri, serverSelectionTimeoutMS=CONNECT_TIMEOUT_MS)
        try:
            client.admin.command("ping")
        except PyMongoError as err:
            client.close()
            raise StorageError(f"MongoDB connection failed: {err}") from err

        logger.info("Connected to MongoDB database=%s collection=%s", database, collection)
        return cls(client[database][collection], client=client)

    def append(self, turn: Turn) -> None:
        try:
            self._collection.insert_one(turn_to_document(turn))
        except PyMongoError as err:
            raise StorageError(f"Failed to store chat turn: {err}") from err

    def recent(self, limit: int) -> List[Turn]:
        if limit <= 0:
            return []
        try:
            cursor = self._collection.find().sort("timestamp", DESCENDING).limit(limit)
            return [document_to_turn(doc) for doc in cursor]
        except PyMongoError as err:
            raise StorageError(f"Failed to read chat history: {err}") from err

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
