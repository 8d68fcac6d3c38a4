"""Failure taxonomy shared by the request pipeline.

Every error that can reach a request handler derives from `QueryChatError`.
Handlers collapse all of them (and anything unexpected) into the failure
envelope; the subclasses exist so callers and logs can tell caller mistakes
from provider or storage trouble.
"""


class QueryChatError(Exception):
    """Base class for pipeline errors."""


class InvalidInput(QueryChatError):
    """Required request field is missing, not a string, or blank."""


class UpstreamError(QueryChatError):
    """Completion provider unreachable, rejected the call, or timed out."""


class StorageError(QueryChatError):
    """History store could not be reached, read, or written."""
