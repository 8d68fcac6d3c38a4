"""Conversation turn data contract shared by memory and prompting layers.

A `Turn` is created by the chat handler after a successful completion and is
never mutated afterwards. The history store owns persistence; the prompt
builder only reads `input`/`output`.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Turn:
    """One recorded exchange.

    Attributes:
        input: User text exactly as received.
        output: Model text returned to the user.
        timestamp: Creation instant (UTC); orders turns in the store.
    """

    input: str
    output: str
    timestamp: datetime = field(default_factory=_utcnow)
