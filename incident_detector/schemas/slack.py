"""
Slack-facing contracts.

SlackMessageEvent is the already-verified ``event`` object of an Events API
callback. ThreadMessage is one row of a thread history read; AggregatedThread is
the ordered, name-resolved thread handed to the classifier.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

MESSAGE_EVENT_TYPE = "message"


def ts_sort_key(ts: str) -> Decimal:
    """Slack timestamps are decimal strings ("1712345678.000100"); compare numerically."""
    try:
        return Decimal(ts)
    except (InvalidOperation, TypeError):
        return Decimal(0)


class SlackMessageEvent(BaseModel):
    """Inbound message event as delivered by the Events API."""

    model_config = ConfigDict(extra="ignore")

    type: str
    subtype: Optional[str] = None
    channel: Optional[str] = None
    user: Optional[str] = None
    text: str = ""
    ts: Optional[str] = None
    thread_ts: Optional[str] = None

    @property
    def is_eligible(self) -> bool:
        """Only plain user messages are processed; edits, deletes and bot posts carry a subtype."""
        return self.type == MESSAGE_EVENT_TYPE and not self.subtype


class SlackEventEnvelope(BaseModel):
    """Outer Events API payload (url_verification or event_callback)."""

    model_config = ConfigDict(extra="ignore")

    type: str
    challenge: Optional[str] = None
    event_id: Optional[str] = None
    event: Optional[dict[str, Any]] = None


class ThreadMessage(BaseModel):
    """One message from a thread history read."""

    user_id: str
    text: str
    ts: str


class ThreadEntry(BaseModel):
    """One aggregated message with its author resolved to a display name."""

    user_id: str
    display_name: str
    text: str
    ts: str


class AggregatedThread(BaseModel):
    """Thread messages ordered by ts ascending, one entry per distinct ts."""

    channel: str
    thread_ts: str
    entries: list[ThreadEntry] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)
